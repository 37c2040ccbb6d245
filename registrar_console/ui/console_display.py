"""Streamlit helpers that draw the current console page and report user actions.

Rendering never calls the controller's async methods itself; it returns the
action the user picked and app.py runs it on the console's event loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import streamlit as st

from registrar_console.domains.errors import SEVERITY_WARNING
from registrar_console.domains.forms.form_binder import FieldSpec, RepeatedGroup
from registrar_console.orchestration.console_controller import (
    ConsoleController,
    ControllerState,
    PageMode,
    PageState,
)
from registrar_console.orchestration.routing import StaticRoute
from registrar_console.utils.logger import get_logger

logger = get_logger()


@dataclass(frozen=True)
class UiAction:
    """A user request the app should run against the controller."""

    kind: str  # edit | save | cancel | add_row | remove_row | retry
    group: str = ""
    index: int = -1


def field_label(field_id: str) -> str:
    """Human label for a field id: 'domain:authInfo.domain:pw' -> 'authInfo / pw'."""
    parts = []
    for segment in field_id.split("."):
        name = segment.split(":", 1)[-1]
        parts.append(name)
    return " / ".join(parts)


def render_notices(controller: ConsoleController, limit: int = 3) -> None:
    for notice in controller.notices[-limit:]:
        if notice.severity == SEVERITY_WARNING:
            st.warning(notice.message)
        else:
            st.error(notice.message)


def _render_scalar(page: PageState, spec: FieldSpec, widget_key: str) -> None:
    binder = page.binder
    value = binder.value(spec.path)
    new_value = st.text_input(
        field_label(spec.path),
        value=value,
        key=f"{widget_key}:{spec.path}",
        disabled=binder.read_only,
    )
    if not binder.read_only and new_value != value:
        binder.set_value(spec.path, new_value)


def _render_group(page: PageState, group: RepeatedGroup, widget_key: str) -> UiAction | None:
    binder = page.binder
    action: UiAction | None = None
    st.markdown(f"**{field_label(group.path)}** ({binder.row_count(group.path)})")
    for index in range(binder.row_count(group.path)):
        cols = st.columns(len(group.columns) + (0 if binder.read_only else 1))
        for col, column in zip(cols, group.columns):
            field_id = group.field_id(index, column)
            value = binder.value(field_id)
            with col:
                new_value = st.text_input(
                    field_label(column),
                    value=value,
                    key=f"{widget_key}:{field_id}",
                    disabled=binder.read_only,
                )
            if not binder.read_only and new_value != value:
                binder.set_value(field_id, new_value)
        if not binder.read_only:
            with cols[-1]:
                if st.button("Remove", key=f"{widget_key}:{group.path}:rm:{index}"):
                    action = UiAction("remove_row", group.path, index)
    if not binder.read_only:
        if st.button(
            f"Add {field_label(group.path)}",
            key=f"{widget_key}:{group.path}:add",
            disabled=not binder.can_add_row(group.path),
        ):
            action = UiAction("add_row", group.path)
    return action


def render_page(controller: ConsoleController, widget_key: str) -> UiAction | None:
    """Draw the current page. Returns the action the user requested, if any."""
    route = controller.route
    if route is None:
        st.caption("Enter a location such as `domain/example.lol` or `contact`.")
        return None
    if isinstance(route, StaticRoute):
        st.subheader(route.name.replace("-", " ").title())
        return None

    page = controller.page
    if page is None:
        return None
    title = page.object_key or f"New {page.resource.name}"
    st.subheader(f"{page.resource.name.title()}: {title}")
    if controller.state is ControllerState.LOADING and not page.current_tree and not page.is_new:
        st.caption("Not loaded.")
        if st.button("Retry", key=f"{widget_key}:retry"):
            return UiAction("retry")
        return None

    action: UiAction | None = None
    for spec in page.binder.specs:
        if isinstance(spec, RepeatedGroup):
            action = _render_group(page, spec, widget_key) or action
        else:
            _render_scalar(page, spec, widget_key)

    buttons: dict[str, Any] = {}
    if page.mode is PageMode.VIEW:
        buttons["edit"] = st.button("Edit", key=f"{widget_key}:edit")
    else:
        c1, c2 = st.columns(2)
        with c1:
            buttons["save"] = st.button("Save", key=f"{widget_key}:save", type="primary")
        with c2:
            buttons["cancel"] = st.button("Cancel", key=f"{widget_key}:cancel")
    for kind, pressed in buttons.items():
        if pressed:
            logger.debug("UI action %s on %s", kind, title)
            action = UiAction(kind)
    return action
