"""
Analysis and saved-note display components.
"""

import streamlit as st

from src.core.models import Analysis, Note


def render_analysis(analysis: Analysis) -> None:
    """Render key points, project analysis and constraint questions."""
    st.markdown("**Key points**")
    for i, point in enumerate(analysis.key_points, start=1):
        title = point.title or f"Point {i}"
        st.markdown(f"{i}. **{title}**")
        if point.description:
            st.caption(point.description)

    if analysis.project_analysis:
        st.markdown("**Project analysis**")
        st.write(analysis.project_analysis)

    if analysis.constraint_questions:
        st.markdown("**Questions to consider**")
        for question in analysis.constraint_questions:
            st.markdown(f"- {question}")


def render_note_card(note: Note, disabled: bool = False) -> tuple[str, str | None]:
    """Render one saved note with rename and delete controls.

    Returns:
        ``(action, value)`` where action is ``"rename"``, ``"delete"`` or
        ``""`` when the user did nothing this run.
    """
    created = note.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
    with st.expander(f"{note.title}  |  {created}"):
        render_analysis(note.analysis)
        with st.popover("Transcript"):
            st.write(note.transcription)

        col1, col2 = st.columns([3, 1])
        with col1:
            new_title = st.text_input(
                "Title",
                value=note.title,
                key=f"title_{note.id}",
                disabled=disabled,
            )
            if st.button("Rename", key=f"rename_{note.id}", disabled=disabled):
                return "rename", new_title
        with col2:
            confirm_key = f"confirm_delete_{note.id}"
            if st.session_state.get(confirm_key):
                st.warning("Delete this note?")
                if st.button("Yes, delete", key=f"delete_yes_{note.id}", type="primary"):
                    st.session_state.pop(confirm_key, None)
                    return "delete", None
                if st.button("Cancel", key=f"delete_no_{note.id}"):
                    st.session_state.pop(confirm_key, None)
                    st.rerun()
            elif st.button("Delete", key=f"delete_{note.id}", disabled=disabled):
                st.session_state[confirm_key] = True
                st.rerun()
    return "", None
