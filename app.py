"""
DesiShield Streamlit UI
Paste or dictate a message, get a phishing risk verdict, log corrections.
"""

import asyncio
import html
import weakref

import streamlit as st

from desishield.config import settings
from desishield.schemas.analysis_schemas import AnalysisResult, DemoCase, Label
from desishield.services.audio_service import RecordedAudioTranscriber
from desishield.services.session_service import TriageSession
from desishield.utils.demo_cases import DEMO_CASES
from desishield.utils.highlighting import missing_terms, split_highlighted
from desishield.utils.logging_config import init_logging, metrics
from desishield.utils.risk_levels import band_color, derive_risk_band


st.set_page_config(
    page_title="DesiShield",
    page_icon="🛡️",
    layout="wide",
)


@st.cache_resource
def _configure_logging() -> bool:
    init_logging()
    return True


_configure_logging()


# ---------- Session ----------


if "triage_session" not in st.session_state:
    st.session_state.triage_session = TriageSession()
    # One loop per browser session; the OpenAI async client is bound to it.
    st.session_state.event_loop = asyncio.new_event_loop()
    # Closed when Streamlit drops the session state
    weakref.finalize(st.session_state.triage_session, st.session_state.event_loop.close)
    st.session_state.message_input = ""

session: TriageSession = st.session_state.triage_session


def run_async(coro):
    return st.session_state.event_loop.run_until_complete(coro)


def sync_input_widget():
    st.session_state.message_input = session.current_input


# ---------- Callbacks ----------


def on_input_change():
    session.set_input(st.session_state.message_input)


def on_clear():
    session.clear_input()
    sync_input_widget()


def on_analyze():
    session.set_input(st.session_state.message_input)
    run_async(session.submit())


def on_demo(case: DemoCase):
    run_async(session.run_demo(case))
    sync_input_widget()


def on_feedback(label: Label):
    entry = session.record_feedback(label)
    if entry is not None:
        st.toast(f"Feedback logged: Mark as {label.value}")


def on_export(filename: str):
    session.record_export(filename)


def on_transcribe():
    clip = st.session_state.get("voice_clip")
    if clip is None:
        recognizer = None
    else:
        audio = clip.getvalue()
        recognizer = RecordedAudioTranscriber(audio, filename=clip.name or "dictation.wav")
    run_async(session.dictate(recognizer))
    sync_input_widget()


# ---------- Rendering ----------


BADGES = {
    Label.SAFE: "🟢",
    Label.SUSPICIOUS: "🟡",
    Label.PHISHING: "🔴",
}


def render_highlighted_message(message: str, terms):
    parts = []
    for segment in split_highlighted(message, terms):
        text = html.escape(segment.text)
        if segment.flagged:
            parts.append(
                "<mark style='background-color:#ffedd5;color:#c2410c;'>" + text + "</mark>"
            )
        else:
            parts.append(text)
    st.markdown(
        "<div style='white-space: pre-wrap;'>" + "".join(parts) + "</div>",
        unsafe_allow_html=True,
    )


def render_result(result: AnalysisResult, message: str):
    st.subheader("🔎 Analysis Result")
    st.caption(f"Language: **{result.language}**")

    col1, col2, col3 = st.columns(3)

    with col1:
        st.metric("Verdict", f"{BADGES[result.label]} {result.label.value}")

    with col2:
        band = derive_risk_band(result.score)
        st.metric("Risk Score", f"{result.score} / 100")
        st.markdown(f":{band_color(result.score)}[{band.value.upper()} RISK]")
        st.progress(result.score / 100)

    with col3:
        st.metric("Threat Type", result.threat_type)
        if result.triggered_rules:
            st.write(" ".join(f"`{rule}`" for rule in result.triggered_rules))

    st.markdown("**ℹ️ Explainability Logic**")
    st.info(result.reasoning)

    st.markdown("**🚩 Trigger Words Highlighted**")
    if result.highlighted_terms:
        render_highlighted_message(message, result.highlighted_terms)
        not_found = missing_terms(message, result.highlighted_terms)
        if not_found:
            st.caption("Flagged but not found verbatim: " + ", ".join(not_found))
    else:
        st.caption("No specific trigger words flagged.")

    st.divider()
    st.markdown("Is this analysis correct?")
    fb_safe, fb_scam, _ = st.columns([1, 1, 3])
    with fb_safe:
        st.button(
            "Mark as Safe",
            key="feedback_safe",
            on_click=on_feedback,
            args=(Label.SAFE,),
            disabled=not session.can_record_feedback,
        )
    with fb_scam:
        st.button(
            "Mark as Scam",
            key="feedback_scam",
            on_click=on_feedback,
            args=(Label.PHISHING,),
            disabled=not session.can_record_feedback,
        )

    if settings.debug:
        with st.expander("🔧 Raw JSON response"):
            st.json(result.to_payload())


# ---------- Sidebar ----------


st.sidebar.title("▶️ One-Click Demo")
for case in DEMO_CASES:
    st.sidebar.button(
        f"{case.type}: {case.title}",
        key=f"demo_{case.id}",
        on_click=on_demo,
        args=(case,),
        disabled=session.is_analyzing,
        help=case.text,
        use_container_width=True,
    )

st.sidebar.markdown("---")
st.sidebar.subheader("📋 Feedback Log")
export_name = session.export_filename()
st.sidebar.download_button(
    "⬇️ Export CSV",
    data=session.export_ledger() or "",
    file_name=export_name,
    mime="text/csv",
    on_click=on_export,
    args=(export_name,),
    disabled=not session.can_export,
)

if not session.can_export:
    st.sidebar.caption("No feedback recorded yet.")
else:
    stats = session.ledger_stats()
    st.sidebar.caption(
        f"{stats['total_feedback']} entries, "
        f"{stats['agreement_rate']:.0%} agree with the model"
    )
    for entry in session.ledger.entries:
        icon = "🟢" if entry.user_label == Label.SAFE else "🔴"
        st.sidebar.markdown(f"{icon} **{entry.user_label.value}** · {entry.timestamp}")
        st.sidebar.caption(f"“{entry.message[:120]}”")

if not settings.has_credentials:
    st.sidebar.warning("OPENAI_API_KEY is not set. Analysis and voice input will fail until it is configured.")

if settings.debug:
    with st.sidebar.expander("📊 App metrics"):
        metric_stats = metrics.get_stats()
        for name, value in sorted(metric_stats["counters"].items()):
            st.write(f"`{name}`: {value}")
        latency = metric_stats["timings"].get("analysis.latency")
        if latency:
            st.write(f"Analysis latency p50: {latency['p50'] * 1000:.0f} ms over {latency['count']} calls")
        if not metric_stats["counters"]:
            st.caption("No activity yet.")


# ---------- Main UI ----------


st.title("🛡️ DesiShield")
st.markdown(
    "**Multilingual Scam Detection** for SMS, chat and email: banking fraud, fake prizes "
    "and phishing in English, Hindi, Tamil and Hinglish."
)
st.markdown("---")

st.text_area(
    "Input message",
    key="message_input",
    height=180,
    placeholder="Paste SMS, Email or Chat text here... (Hinglish/Regional supported)",
    on_change=on_input_change,
)

voice_col, clear_col, analyze_col = st.columns([3, 1, 1])

with voice_col:
    if hasattr(st, "audio_input"):
        st.audio_input("🎙️ Voice input", key="voice_clip")
        st.button("Use recording", key="transcribe", on_click=on_transcribe)
    else:
        st.button("🎙️ Voice input", key="transcribe", on_click=on_transcribe)

with clear_col:
    st.button("🔄 Clear", key="clear", on_click=on_clear)

with analyze_col:
    st.button(
        "🔍 Analyze Now",
        key="analyze",
        type="primary",
        on_click=on_analyze,
        disabled=not session.can_submit_text(st.session_state.message_input),
    )

if session.last_error:
    st.error(session.last_error)

if session.current_result is not None and not session.is_analyzing:
    render_result(session.current_result, session.analyzed_text or session.current_input)


# --- Footer ---
st.markdown("---")
st.markdown(
    "<div style='text-align: center; color: gray;'>"
    "DesiShield v0.1.0 • Multilingual phishing triage"
    "</div>",
    unsafe_allow_html=True,
)
