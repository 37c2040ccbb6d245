"""
Registrar Console: Streamlit UI entry point.
"""

import asyncio

import streamlit as st

# Load .env first so the console picks up the configured client id and token
from registrar_console.utils.config import load_config, log_level, product_name
load_config()

from registrar_console.domains.errors import ConsoleError
from registrar_console.orchestration.console_controller import ConsoleController
from registrar_console.ui.console_display import UiAction, render_notices, render_page
from registrar_console.utils.logger import setup_logger, get_logger

setup_logger("registrar_console", level=log_level())
log = get_logger()

st.set_page_config(page_title=product_name(), layout="wide")
st.title(f"{product_name()} Registrar Console")

# One event loop per browser session so the controller's locks and login task stay on one loop
if "loop" not in st.session_state:
    st.session_state.loop = asyncio.new_event_loop()
if "controller" not in st.session_state:
    try:
        st.session_state.controller = ConsoleController.from_config()
    except ValueError as e:
        st.error(str(e))
        st.stop()
if "render_gen" not in st.session_state:
    st.session_state.render_gen = 0

loop: asyncio.AbstractEventLoop = st.session_state.loop
controller: ConsoleController = st.session_state.controller


def _run(coro) -> None:
    loop.run_until_complete(coro)


def _apply(action: UiAction) -> None:
    try:
        if action.kind == "edit":
            controller.begin_edit()
        elif action.kind == "cancel":
            controller.cancel()
        elif action.kind == "save":
            _run(controller.save())
        elif action.kind == "add_row":
            controller.add_row(action.group)
        elif action.kind == "remove_row":
            controller.remove_row(action.group, action.index)
        elif action.kind == "retry":
            _run(controller.navigate(controller.location))
    except (ValueError, IndexError) as e:
        log.warning("UI action %s rejected: %s", action.kind, e)
        st.session_state.last_ui_error = str(e)
    except ConsoleError as e:
        st.session_state.last_ui_error = e.message


with st.sidebar:
    st.header("Navigate")
    location = st.text_input("Location", value=controller.location or "", placeholder="domain/example.lol")
    if st.button("Go", use_container_width=True):
        _run(controller.navigate(location))
        st.session_state.render_gen += 1
        st.rerun()
    st.caption("`domain`, `contact` or `host` alone opens a blank create form.")
    session = controller.sessions.session
    st.caption(f"Client: **{session.client_id}** · State: `{controller.sessions.state.value}`")

render_notices(controller)
if st.session_state.get("last_ui_error"):
    st.warning(st.session_state.last_ui_error)
    st.session_state.last_ui_error = None

widget_key = f"p{controller.sequence}g{st.session_state.render_gen}"
action = render_page(controller, widget_key)
if action is not None:
    _apply(action)
    st.session_state.render_gen += 1
    st.rerun()
