"""
Family-scoped repository base.

DESIGN DECISION: Every table the user edits goes through one base class
so the scoping rules live in exactly one place:
1. Reads are filtered by the owning key before anything else
2. The owning key is always stamped from the session, never from input
3. Updates and deletes carry BOTH the record id and the owning key
4. After a successful mutation the snapshot is rebuilt by re-listing

The public methods are the boundary towards presentation. They never
raise on backend trouble: failures become a notification plus False or
an empty snapshot.
"""

from typing import Any, Awaitable, Callable, Generic, Mapping, Optional, TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError
from pydantic_core import to_jsonable_python

from family_finance.audit import AuditLogger
from family_finance.auth import Session
from family_finance.backend import BackendClient, BackendError, ChangeSubscription, OrderBy
from family_finance.backend.query import utcnow_iso
from family_finance.backend.realtime import ChangeEvent
from family_finance.config import get_settings
from family_finance.errors import RepositoryError
from family_finance.models.finance import BackendRow
from family_finance.notifications import Notifier

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BackendRow)
T = TypeVar("T")

InputData = Union[BaseModel, Mapping[str, Any]]

# columns a caller may never write directly
PROTECTED_COLUMNS = ("id", "created_at", "updated_at")


class FamilyScopedRepository(Generic[ModelT]):
    """
    Local snapshot of one owner-scoped table plus its mutations.

    Subclasses set `table`, `model`, `create_model`, `order` and the
    labels used in notifications. Per-entity create defaults go in
    `apply_defaults`.
    """

    table: str = ""
    owner_key: str = "user_id"
    model: type[BackendRow] = BackendRow
    create_model: Optional[type[BaseModel]] = None
    order: tuple[OrderBy, ...] = ()
    limit: Optional[int] = None
    label: str = "record"
    label_plural: str = "records"

    def __init__(
        self,
        backend: BackendClient,
        session: Session,
        notifier: Notifier,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._backend = backend
        self._session = session
        self._notifier = notifier
        self._audit_logger = audit_logger
        self._audit_enabled = get_settings().access.audit_enabled
        self._items: list[ModelT] = []
        self._loading = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    def set_session(self, session: Session) -> None:
        """Switch identity. The old snapshot belonged to someone else."""
        if session.user_id != self._session.user_id:
            self._items = []
        self._session = session

    @property
    def items(self) -> list[ModelT]:
        return list(self._items)

    @property
    def loading(self) -> bool:
        return self._loading

    def _owner_filters(self) -> Optional[dict[str, Any]]:
        user_id = self._session.user_id
        if user_id is None:
            return None
        return {self.owner_key: user_id}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def refresh(self) -> list[ModelT]:
        """Re-list the caller's rows. No user means an empty snapshot."""
        filters = self._owner_filters()
        if filters is None:
            self._items = []
            return []

        self._loading = True
        try:
            rows = await self._call("select", self._backend.select(self.table, filters, self.order, self.limit))
            self._items = [self.model.model_validate(row) for row in rows]
        except (RepositoryError, ValidationError) as e:
            logger.error("repository_list_failed", table=self.table, error=str(e))
            self._notifier.error(
                f"Error loading {self.label_plural}",
                f"We could not load your {self.label_plural}.",
            )
            await self._audit_failure("select", e)
            self._items = []
        finally:
            self._loading = False
        return list(self._items)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, data: InputData) -> bool:
        """Insert one row owned by the session's user."""
        user_id = self._session.user_id
        if user_id is None:
            self._notify_unauthenticated()
            return False

        try:
            row = self.prepare_create(data)
        except ValidationError as e:
            logger.warning("repository_create_rejected", table=self.table, error=str(e))
            self._notifier.error(
                f"Error creating {self.label}",
                f"The {self.label} data is not valid.",
            )
            return False
        row[self.owner_key] = user_id

        try:
            created = await self._call("insert", self._backend.insert(self.table, row))
        except RepositoryError as e:
            logger.error("repository_create_failed", table=self.table, error=str(e))
            self._notifier.error(
                f"Error creating {self.label}",
                f"We could not save the {self.label}.",
            )
            await self._audit_failure("insert", e)
            return False

        self._notifier.success(
            f"{self.label.capitalize()} created",
            f"The {self.label} was saved.",
        )
        if self._audit_logger and self._audit_enabled:
            await self._audit_logger.log_record_created(user_id, self.table, created.get("id"))
        await self.refresh()
        return True

    async def update(self, record_id: str, changes: InputData) -> bool:
        """
        Apply `changes` to the row with `record_id` owned by the caller.

        A row that exists but belongs to someone else is indistinguishable
        from a missing one: nothing is written and False is returned.
        """
        user_id = self._session.user_id
        if user_id is None:
            self._notify_unauthenticated()
            return False

        values = self.prepare_update(changes)
        values["updated_at"] = utcnow_iso()
        filters = {"id": record_id, self.owner_key: user_id}

        try:
            updated = await self._call("update", self._backend.update(self.table, values, filters))
        except RepositoryError as e:
            logger.error("repository_update_failed", table=self.table, record_id=record_id, error=str(e))
            self._notifier.error(
                f"Error updating {self.label}",
                f"We could not update the {self.label}.",
            )
            await self._audit_failure("update", e)
            return False

        if not updated:
            logger.warning("repository_update_no_match", table=self.table, record_id=record_id)
            self._notifier.error(
                f"Error updating {self.label}",
                f"The {self.label} was not found.",
            )
            return False

        self._notifier.success(
            f"{self.label.capitalize()} updated",
            f"The {self.label} was updated.",
        )
        if self._audit_logger and self._audit_enabled:
            fields = sorted(k for k in values if k != "updated_at")
            await self._audit_logger.log_record_updated(user_id, self.table, record_id, fields)
        await self.refresh()
        return True

    async def delete(self, record_id: str) -> bool:
        """Delete the row with `record_id` owned by the caller."""
        user_id = self._session.user_id
        if user_id is None:
            self._notify_unauthenticated()
            return False

        filters = {"id": record_id, self.owner_key: user_id}
        try:
            removed = await self._call("delete", self._backend.delete(self.table, filters))
        except RepositoryError as e:
            logger.error("repository_delete_failed", table=self.table, record_id=record_id, error=str(e))
            self._notifier.error(
                f"Error deleting {self.label}",
                f"We could not delete the {self.label}.",
            )
            await self._audit_failure("delete", e)
            return False

        if removed == 0:
            logger.warning("repository_delete_no_match", table=self.table, record_id=record_id)
            self._notifier.error(
                f"Error deleting {self.label}",
                f"The {self.label} was not found.",
            )
            return False

        self._notifier.success(
            f"{self.label.capitalize()} deleted",
            f"The {self.label} was removed.",
        )
        if self._audit_logger and self._audit_enabled:
            await self._audit_logger.log_record_deleted(user_id, self.table, record_id)
        await self.refresh()
        return True

    # ------------------------------------------------------------------
    # Real-time
    # ------------------------------------------------------------------

    def watch(
        self,
        on_change: Optional[Callable[[list[ModelT]], None]] = None,
    ) -> Optional[ChangeSubscription]:
        """
        Re-list whenever one of the caller's rows changes.

        Use the returned subscription as a context manager, or keep it
        and close it on teardown; a dropped handle stops the watch too.
        Returns None when nobody is signed in.
        """
        filters = self._owner_filters()
        if filters is None:
            return None

        async def _resync(event: ChangeEvent) -> None:
            logger.debug(
                "repository_change_received",
                table=self.table,
                change_type=event.change_type.value,
            )
            items = await self.refresh()
            if on_change is not None:
                on_change(items)

        return self._backend.changes.subscribe(self.table, _resync, filters)

    # ------------------------------------------------------------------
    # Row preparation
    # ------------------------------------------------------------------

    def prepare_create(self, data: InputData) -> dict[str, Any]:
        """
        Validate `data` against `create_model` and dump it as a row.

        Raises:
            ValidationError: If `data` does not fit `create_model`
        """
        if self.create_model is not None and not isinstance(data, self.create_model):
            payload = data.model_dump() if isinstance(data, BaseModel) else dict(data)
            data = self.create_model.model_validate(payload)
        if isinstance(data, BaseModel):
            row = data.model_dump(mode="json", exclude_none=True)
        else:
            row = to_jsonable_python(dict(data))
        row = self._strip_protected(row)
        return self.apply_defaults(row)

    def prepare_update(self, changes: InputData) -> dict[str, Any]:
        if isinstance(changes, BaseModel):
            values = changes.model_dump(mode="json", exclude_unset=True)
        else:
            values = to_jsonable_python(dict(changes))
        return self._strip_protected(values)

    def apply_defaults(self, row: dict[str, Any]) -> dict[str, Any]:
        return row

    def _strip_protected(self, row: dict[str, Any]) -> dict[str, Any]:
        blocked = set(PROTECTED_COLUMNS) | {self.owner_key}
        return {k: v for k, v in row.items() if k not in blocked}

    async def _call(self, operation: str, call: Awaitable[T]) -> T:
        """Await a backend call, re-raising its failure as RepositoryError."""
        try:
            return await call
        except BackendError as e:
            raise RepositoryError(operation, self.table, str(e)) from e

    def _notify_unauthenticated(self) -> None:
        logger.warning("repository_write_without_user", table=self.table)
        self._notifier.error(
            "Not signed in",
            f"Sign in to change your {self.label_plural}.",
        )

    async def _audit_failure(self, operation: str, error: Exception) -> None:
        if self._audit_logger is None or not self._audit_enabled:
            return
        await self._audit_logger.log_backend_error(
            user_id=self._session.user_id,
            operation=operation,
            table=self.table,
            error_message=str(error),
        )

    # keep last: shadows the builtin inside the class body
    list = refresh
