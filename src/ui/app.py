"""
Audio Notes Streamlit UI - main entry point.

Run with: ``streamlit run src/ui/app.py``

The page only renders state and forwards user actions to the
``PipelineOrchestrator`` and ``NoteStore`` kept in ``st.session_state``.
Each async action runs to completion inside ``asyncio.run``.
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from src.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (src/ui/),
# which removes the project root needed for absolute ``src.*`` imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import asyncio  # noqa: E402
import logging  # noqa: E402

import streamlit as st  # noqa: E402

from src.core.config import get_settings  # noqa: E402
from src.core.exceptions import AudioNotesError, NoteStoreCorruptError  # noqa: E402
from src.core.models import PipelineState  # noqa: E402
from src.services.orchestrator import PipelineOrchestrator, create_direct_backend  # noqa: E402
from src.services.storage import NoteStore, create_slot_backend  # noqa: E402
from src.ui.api_client import get_api_client  # noqa: E402
from src.ui.components.note_card import render_analysis, render_note_card  # noqa: E402

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Audio Notes",
    page_icon="\U0001f399️",
    layout="centered",
)

_settings = get_settings()

# ---------------------------------------------------------------------------
# Session state defaults
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "api_base_url": _settings.api_base_url,
    "use_backend_api": True,
    "upload_nonce": 0,
}

for key, value in _DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = value


def _run(coro):
    """Run one async action, surfacing domain errors as messages."""
    try:
        return asyncio.run(coro)
    except AudioNotesError as exc:
        st.session_state["_error"] = exc.detail
        return None


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("\U0001f399️ Audio Notes")
    st.caption("Speak an idea, get key points and a title")
    st.divider()
    use_api = st.toggle(
        "Process through backend API",
        value=st.session_state.use_backend_api,
        help="Off: call the AI provider directly from this process.",
    )
    st.session_state.api_base_url = st.text_input(
        "Backend API URL",
        value=st.session_state.api_base_url,
        disabled=not use_api,
    )

    if use_api:
        _client = get_api_client(st.session_state.api_base_url)
        _conn_ok, _conn_msg = asyncio.run(_client.check_connection())
        if _conn_ok:
            st.success(f"Backend: {_conn_msg}")
        else:
            st.error(f"Backend: {_conn_msg}")

# ---------------------------------------------------------------------------
# Store and pipeline (created once per session, rebuilt on mode change)
# ---------------------------------------------------------------------------
if "store" not in st.session_state or not st.session_state.store.loaded:
    store = NoteStore(create_slot_backend())
    try:
        asyncio.run(store.load())
    except NoteStoreCorruptError as exc:
        st.error(f"{exc.detail}. Fix or remove the stored notes, then reload.")
        st.stop()
    st.session_state.store = store

store: NoteStore = st.session_state.store

if "pipeline" not in st.session_state or st.session_state.use_backend_api != use_api:
    if use_api:
        backend = get_api_client(st.session_state.api_base_url)
    else:
        try:
            backend = create_direct_backend()
        except AudioNotesError as exc:
            st.error(exc.detail)
            st.stop()
    st.session_state.pipeline = PipelineOrchestrator(backend, store)
    st.session_state.use_backend_api = use_api

pipeline: PipelineOrchestrator = st.session_state.pipeline

# ---------------------------------------------------------------------------
# Audio intake
# ---------------------------------------------------------------------------
st.header("New note")

if pipeline.state == PipelineState.idle:
    tab_record, tab_upload, tab_mic = st.tabs(["Record", "Upload", "Local microphone"])
    nonce = st.session_state.upload_nonce

    with tab_record:
        recorded = st.audio_input("Record a voice note", key=f"record_{nonce}")
        if recorded is not None:
            try:
                pipeline.accept_upload(
                    recorded.getvalue(), recorded.type or "audio/wav", recorded.name
                )
            except AudioNotesError as exc:
                st.error(exc.detail)
            else:
                st.rerun()

    with tab_upload:
        uploaded = st.file_uploader(
            "Upload an audio file",
            type=["wav", "mp3", "m4a", "webm", "ogg", "flac"],
            key=f"upload_{nonce}",
        )
        if uploaded is not None:
            try:
                pipeline.accept_upload(uploaded.getvalue(), uploaded.type, uploaded.name)
            except AudioNotesError as exc:
                st.error(exc.detail)
            else:
                st.rerun()

    with tab_mic:
        st.caption("Records from the microphone of the machine running this app.")
        if st.button("Start recording", type="primary"):
            try:
                pipeline.start_capture()
            except AudioNotesError as exc:
                st.error(exc.detail)
            else:
                st.rerun()

elif pipeline.state == PipelineState.capturing:
    st.info("Recording... press stop when you are done.")
    if st.button("Stop recording", type="primary"):
        try:
            pipeline.stop_capture()
        except AudioNotesError as exc:
            st.error(exc.detail)
        st.rerun()

# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------
if pipeline.audio_blob is not None:
    st.audio(pipeline.audio_blob.data, format=pipeline.audio_blob.mime_type)

if pipeline.state in (PipelineState.captured, PipelineState.transcribed):
    label = "Process audio" if pipeline.state == PipelineState.captured else "Retry analysis"
    if st.button(label, type="primary", disabled=pipeline.busy):
        with st.spinner("Transcribing and analyzing..."):
            _run(pipeline.process_audio())
        st.rerun()

if pipeline.transcript:
    st.subheader("Transcript")
    st.write(pipeline.transcript)

if pipeline.analysis is not None:
    st.subheader("Insights")
    render_analysis(pipeline.analysis)
    if st.button("Save note", type="primary", disabled=pipeline.busy):
        with st.spinner("Generating title and saving..."):
            note = _run(pipeline.save_note())
        if note is not None:
            st.session_state.upload_nonce += 1
            st.session_state["_toast"] = f"Saved: {note.title}"
        st.rerun()

if pipeline.state != PipelineState.idle:
    if st.button("Discard", disabled=pipeline.busy):
        pipeline.reset()
        st.session_state.upload_nonce += 1
        st.rerun()

if "_error" in st.session_state:
    st.error(st.session_state.pop("_error"))
if "_toast" in st.session_state:
    st.toast(st.session_state.pop("_toast"))

# ---------------------------------------------------------------------------
# Saved notes
# ---------------------------------------------------------------------------
st.divider()
st.header(f"Saved notes ({len(store)})")

if not len(store):
    st.caption("No notes yet. Record or upload one above.")

for saved in store.notes:
    action, value = render_note_card(saved, disabled=pipeline.busy)
    if action == "rename":
        _run(store.rename(saved.id, value or ""))
        st.rerun()
    elif action == "delete":
        _run(store.delete(saved.id))
        st.rerun()
