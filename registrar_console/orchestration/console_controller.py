"""
Top-level state machine of the registrar console.

Navigation resolves a location into a page, logs in when the page needs the
registry, and loads the object with an info command. Edit, save and cancel
then run against the page's form fields.

Only one page is alive at a time. Every navigation bumps a sequence number,
and results that arrive for an abandoned page are discarded.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from registrar_console.domains.epp.protocol import EppResponse
from registrar_console.domains.epp.resources import ResourceKind
from registrar_console.domains.errors import CommandRejected, ConsoleError
from registrar_console.domains.forms.form_binder import FormBinder, FormFields, collect
from registrar_console.domains.markup.tree_codec import TreeValue
from registrar_console.infrastructure.transport.http_transport import HttpTransport, Transport
from registrar_console.orchestration.routing import ObjectRoute, Route, StaticRoute, resolve
from registrar_console.services.epp_channel import EppChannel
from registrar_console.services.session_manager import Session, SessionManager
from registrar_console.utils import config
from registrar_console.utils.logger import get_logger

logger = get_logger()


class ControllerState(Enum):
    RESOLVING = "resolving"
    LOADING = "loading"
    VIEW = "view"
    EDIT = "edit"
    SAVING = "saving"


class PageMode(Enum):
    VIEW = "view"
    EDIT = "edit"


@dataclass(frozen=True)
class Notice:
    """An error reported to the presentation layer."""

    message: str
    severity: str


@dataclass
class PageState:
    """The object page currently shown."""

    resource: ResourceKind
    object_key: str
    is_new: bool
    sequence: int
    binder: FormBinder
    mode: PageMode = PageMode.VIEW
    current_tree: TreeValue = field(default_factory=dict)
    snapshot: FormFields | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class ConsoleController:
    def __init__(
        self,
        sessions: SessionManager,
        channel: EppChannel,
        on_notice: Callable[[Notice], None] | None = None,
    ) -> None:
        self.sessions = sessions
        self.channel = channel
        self.on_notice = on_notice
        self.state = ControllerState.RESOLVING
        self.location = ""
        self.route: Route | None = None
        self.page: PageState | None = None
        self.notices: list[Notice] = []
        self._sequence = 0

    @classmethod
    def from_config(
        cls,
        transport: Transport | None = None,
        on_notice: Callable[[Notice], None] | None = None,
    ) -> "ConsoleController":
        """Wire a controller from environment settings (see utils.config)."""
        token = config.xsrf_token()
        session = Session(client_id=config.client_id(), xsrf_token=token, transport_authenticated=bool(token))
        channel = EppChannel(transport or HttpTransport(), session)
        sessions = SessionManager(session, channel, password=config.epp_password())
        return cls(sessions, channel, on_notice=on_notice)

    @property
    def sequence(self) -> int:
        return self._sequence

    def _is_current(self, page: PageState) -> bool:
        return self.page is page and page.sequence == self._sequence

    def _report(self, error: ConsoleError) -> None:
        notice = Notice(error.message, error.severity)
        logger.warning("%s: %s", type(error).__name__, error.message)
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)

    async def _execute(self, verb: str, body: TreeValue) -> EppResponse:
        response = await self.channel.execute(verb, body)
        self.sessions.note_response(response)
        if not response.success:
            raise CommandRejected(response.message or f"{verb} failed with code {response.code}", code=response.code)
        return response

    async def _fetch_info(self, page: PageState) -> TreeValue:
        response = await self._execute("info", page.resource.info_body(page.object_key))
        return page.resource.info_tree(response)

    def _apply_info(self, page: PageState, tree: TreeValue) -> None:
        page.current_tree = tree
        page.binder.project(tree)
        page.binder.read_only = True
        page.snapshot = None
        page.mode = PageMode.VIEW
        self.state = ControllerState.VIEW

    # --- Navigation ---

    async def navigate(self, location: str) -> None:
        """Show the page for location, discarding the current page."""
        self._sequence += 1
        sequence = self._sequence
        self.state = ControllerState.RESOLVING
        self.location = location
        self.page = None
        route = resolve(location)
        self.route = route
        if isinstance(route, StaticRoute):
            logger.info("Showing %s page", route.name)
            self.state = ControllerState.VIEW
            return

        page = PageState(
            resource=route.resource,
            object_key=route.key,
            is_new=route.is_new,
            sequence=sequence,
            binder=FormBinder(route.resource.specs),
        )
        self.page = page
        self.state = ControllerState.LOADING
        try:
            await self.sessions.ensure_logged_in()
            if not self._is_current(page):
                return
            if page.is_new:
                self._start_new(page)
                return
            async with page.lock:
                tree = await self._fetch_info(page)
        except ConsoleError as e:
            if self._is_current(page):
                self._report(e)
            else:
                logger.info("Dropping error for abandoned page %s: %s", route.location, e.message)
            return
        if not self._is_current(page):
            logger.info("Discarding stale info response for %s", route.location)
            return
        self._apply_info(page, tree)

    def _start_new(self, page: PageState) -> None:
        page.current_tree = {}
        page.binder.project({})
        page.snapshot = page.binder.snapshot()
        page.binder.read_only = False
        page.mode = PageMode.EDIT
        self.state = ControllerState.EDIT

    def _require_page(self) -> PageState:
        if self.page is None:
            raise ValueError("No object page is shown")
        return self.page

    # --- Edit lifecycle ---

    def begin_edit(self) -> None:
        page = self._require_page()
        if page.mode is PageMode.EDIT:
            return
        if self.state is not ControllerState.VIEW:
            raise ValueError(f"Cannot edit while {self.state.value}")
        page.snapshot = page.binder.snapshot()
        page.binder.read_only = False
        page.mode = PageMode.EDIT
        self.state = ControllerState.EDIT

    def cancel(self) -> None:
        """Restore the pre-edit field values without touching the network."""
        page = self._require_page()
        if page.mode is not PageMode.EDIT or self.state is ControllerState.SAVING:
            return
        if page.snapshot is not None:
            page.binder.restore(page.snapshot)
        page.snapshot = None
        page.binder.read_only = True
        page.mode = PageMode.VIEW
        self.state = ControllerState.VIEW

    def set_field(self, field_id: str, value: str) -> None:
        self._require_page().binder.set_value(field_id, value)

    def add_row(self, group_path: str) -> int:
        return self._require_page().binder.add_row(group_path)

    def remove_row(self, group_path: str, index: int) -> None:
        self._require_page().binder.remove_row(group_path, index)

    async def save(self) -> bool:
        """
        Send the edited fields as a create or update, then reload the object.

        Returns True when the registry accepted the command.
        """
        page = self._require_page()
        if page.mode is not PageMode.EDIT:
            return False
        async with page.lock:
            if not self._is_current(page) or page.mode is not PageMode.EDIT:
                return False
            resource = page.resource
            after = page.binder.collect()
            page.binder.read_only = True
            self.state = ControllerState.SAVING
            try:
                if page.is_new:
                    verb = "create"
                    body = resource.create_body(after)
                else:
                    verb = "update"
                    before = collect(page.snapshot, page.binder.specs) if page.snapshot else {}
                    body = resource.update_body(page.object_key, before, after)
                response = await self._execute(verb, body)
            except ConsoleError as e:
                if self._is_current(page):
                    page.binder.read_only = False
                    self.state = ControllerState.EDIT
                    self._report(e)
                return False
            if not self._is_current(page):
                return True

            created = page.is_new
            if created:
                page.object_key = resource.created_key(after, response)
                page.is_new = False
                self.location = f"{resource.name}/{page.object_key}"
                self.route = ObjectRoute(resource, page.object_key)
            logger.info("%s of %s %s accepted", verb, resource.name, page.object_key)
            page.snapshot = None
            page.binder.read_only = True
            page.mode = PageMode.VIEW
            self.state = ControllerState.LOADING
            try:
                tree = await self._fetch_info(page)
            except ConsoleError as e:
                if self._is_current(page):
                    # Show the last server state, never the unconfirmed local edits.
                    page.binder.project(page.current_tree)
                    if not created:
                        self.state = ControllerState.VIEW
                    self._report(e)
                return True
            if self._is_current(page):
                self._apply_info(page, tree)
            return True
