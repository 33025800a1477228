"""Typed adapter over the bd (beads) CLI."""

import logging
from pathlib import Path

from bdw import decoding, encoding
from bdw.errors import BeadsError, CommandFailedError, NotARepositoryError, error_for
from bdw.invoker import Invoker, SubprocessInvoker
from bdw.models import CreateRequest, Issue, ListFilter, SyncStatus, UpdateRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0

# stderr marker for `bd sync --status` before the sync branch has been created
_NO_SYNC_BRANCH = "does not exist"


class Beads:
    """Runs bd operations against one working directory.

    Holds only immutable configuration, so one instance can be shared freely.
    Every method spawns exactly one bd process (or none, for an empty close)
    and raises a ``BeadsError`` subclass on failure.
    """

    def __init__(
        self,
        work_dir: Path,
        *,
        invoker: Invoker | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> None:
        self.work_dir = Path(work_dir)
        self.invoker = invoker or SubprocessInvoker()
        self.timeout = timeout

    def _run(self, args: list[str]) -> bytes:
        result = self.invoker.run(args, cwd=self.work_dir, timeout=self.timeout)
        if result.ok:
            return result.stdout
        error = error_for(result)
        logger.debug("bd %s failed (%s): %s", " ".join(args), error.kind.value, result.stderr.strip())
        raise error

    # -- queries ------------------------------------------------------------

    def list_issues(self, filters: ListFilter | None = None) -> list[Issue]:
        args = encoding.list_args(filters or ListFilter())
        return decoding.decode_issues(self._run(args), args)

    def ready(self) -> list[Issue]:
        """Issues with no open blockers."""
        args = encoding.ready_args()
        return decoding.decode_issues(self._run(args), args)

    def blocked(self) -> list[Issue]:
        args = encoding.blocked_args()
        return decoding.decode_issues(self._run(args), args)

    def show(self, issue_id: str) -> Issue:
        args = encoding.show_args(issue_id)
        return decoding.decode_shown_issue(self._run(args), issue_id, args)

    def stats(self) -> str:
        """Human-readable statistics report, passed through as-is."""
        return decoding.decode_text(self._run(encoding.stats_args()))

    # -- mutations ----------------------------------------------------------

    def create(self, request: CreateRequest) -> Issue:
        args = encoding.create_args(request)
        return decoding.decode_issue(self._run(args), args)

    def update(self, issue_id: str, request: UpdateRequest) -> None:
        self._run(encoding.update_args(issue_id, request))

    def close(self, *issue_ids: str, reason: str | None = None) -> None:
        args = encoding.close_args(issue_ids, reason)
        if args is None:
            return
        self._run(args)

    def add_dependency(self, issue_id: str, depends_on: str) -> None:
        """Record that ``issue_id`` depends on ``depends_on``."""
        self._run(encoding.dep_add_args(issue_id, depends_on))

    def remove_dependency(self, issue_id: str, depends_on: str) -> None:
        self._run(encoding.dep_remove_args(issue_id, depends_on))

    # -- sync ---------------------------------------------------------------

    def sync(self) -> None:
        self._run(encoding.sync_args())

    def sync_from_main(self) -> None:
        """Pull beads updates from the main branch."""
        self._run(encoding.sync_args(from_main=True))

    def sync_status(self) -> SyncStatus:
        args = encoding.sync_status_args()
        try:
            out = self._run(args)
        except CommandFailedError as exc:
            if _NO_SYNC_BRANCH in exc.stderr:
                logger.debug("no sync branch yet; reporting empty sync status")
                return SyncStatus()
            raise
        return decoding.decode_sync_status(out, args)

    # -- formulas -----------------------------------------------------------

    def formula_list(self, *, as_json: bool = False) -> str:
        """bd's own formula listing, passed through as-is."""
        return decoding.decode_text(self._run(encoding.formula_list_args(as_json)))

    def formula_show(self, name: str, *, as_json: bool = False) -> str:
        return decoding.decode_text(self._run(encoding.formula_show_args(name, as_json)))

    # -- probes -------------------------------------------------------------

    def is_beads_repo(self) -> bool:
        """Liveness probe: can bd operate here?

        Any failure other than "not a repository" still counts as a repo, since
        bd may initialise lazily without a .beads directory.
        """
        try:
            self._run(encoding.probe_args())
        except NotARepositoryError:
            return False
        except BeadsError as exc:
            logger.debug("repo probe failed with %s; treating as a beads repo", exc.kind.value)
        return True

