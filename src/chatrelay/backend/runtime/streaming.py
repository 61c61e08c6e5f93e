"""Per-query streaming state"""
import logging
from typing import Any, Awaitable, Callable, List

logger = logging.getLogger(__name__)


ArtifactRemover = Callable[[Any], Awaitable[None]]


class StreamingState:
    """
    Progress artifacts created by the caller during one query.

    The progress callback registers a handle for every transient artifact it
    creates (for example the id of a "tool is running" chat message). When
    the query fails or is cancelled the caller gets this state back on the
    exception and calls cleanup() to remove them all.

    A new instance is created for every query and never shared.
    """

    def __init__(self):
        self._artifacts: List[Any] = []
        self._text_parts: List[str] = []
        self.tool_count = 0

    @property
    def artifacts(self) -> List[Any]:
        """Artifact handles in creation order (copy)"""
        return list(self._artifacts)

    @property
    def text(self) -> str:
        """Partial assistant text received so far"""
        return "".join(self._text_parts)

    def add_artifact(self, handle: Any) -> None:
        self._artifacts.append(handle)

    def remove_artifact(self, handle: Any) -> bool:
        """Forget a handle the caller already removed itself"""
        try:
            self._artifacts.remove(handle)
            return True
        except ValueError:
            return False

    def append_text(self, text: str) -> None:
        self._text_parts.append(text)

    async def cleanup(self, remover: ArtifactRemover) -> int:
        """
        Remove every registered artifact, best-effort.

        Each removal failure is logged and skipped; the remaining artifacts
        are still attempted. The state holds no artifacts afterwards.

        Args:
            remover: Coroutine function deleting one artifact

        Returns:
            Number of artifacts removed successfully
        """
        artifacts, self._artifacts = self._artifacts, []
        removed = 0
        for handle in artifacts:
            try:
                await remover(handle)
                removed += 1
            except Exception as e:
                logger.debug(f"Failed to remove progress artifact {handle!r}: {e}")

        if removed != len(artifacts):
            logger.warning(
                f"Progress artifact cleanup incomplete: "
                f"removed={removed}, total={len(artifacts)}"
            )
        return removed
