"""Streamlit UI: chat with an uploaded loan document through the REST API."""

import requests
import streamlit as st

from config import API_BASE_URL, HEADERS_TIMEOUT_MS

# (connect, read): the read side waits for response headers while OCR runs
TIMEOUT = (10, HEADERS_TIMEOUT_MS / 1000)

# ── Page config ─────────────────────────────────────────────────────────
st.set_page_config(page_title="Loan Document Assistant", page_icon="🏦", layout="centered")

# ── Custom CSS ──────────────────────────────────────────────────────────
st.markdown("""
<style>
    .stApp { max-width: 800px; margin: 0 auto; }
    div[data-testid="stChatMessage"] {
        border-radius: 12px;
        margin-bottom: 8px;
    }
</style>
""", unsafe_allow_html=True)


# ── Session state init ──────────────────────────────────────────────────
def _init_session():
    if "http" not in st.session_state:
        # One requests.Session per browser tab keeps the API's session cookie
        st.session_state.http = requests.Session()
        st.session_state.extracted = None
        st.session_state.uploaded_name = None

_init_session()

http: requests.Session = st.session_state.http


# ── API helpers ─────────────────────────────────────────────────────────
def _error_message(resp: requests.Response) -> str:
    try:
        return resp.json().get("error") or resp.text
    except ValueError:
        return resp.text


def api_upload(uploaded_file) -> dict | None:
    files = {"file": (uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type or "text/plain")}
    resp = http.post(f"{API_BASE_URL}/api/upload", files=files, timeout=TIMEOUT)
    if resp.status_code != 200:
        st.error(f"Upload failed: {_error_message(resp)}")
        return None
    return resp.json().get("extracted")


def api_ask(question: str) -> str | None:
    resp = http.post(f"{API_BASE_URL}/api/ask", json={"question": question}, timeout=TIMEOUT)
    if resp.status_code != 200:
        st.error(f"⚠️ {_error_message(resp)}")
        return None
    return resp.json().get("answer", "")


def api_history() -> list[dict]:
    resp = http.get(f"{API_BASE_URL}/api/history", timeout=TIMEOUT)
    return resp.json().get("history", []) if resp.ok else []


def api_clear_history() -> None:
    http.post(f"{API_BASE_URL}/api/history/clear", timeout=TIMEOUT)


# ── Sidebar ─────────────────────────────────────────────────────────────
with st.sidebar:
    st.markdown("### 📄 Document")

    uploaded = st.file_uploader("Upload a loan document", type=["txt", "pdf", "png", "jpg", "jpeg", "webp"])
    if uploaded is not None and st.button("Upload & Extract", type="primary", use_container_width=True):
        with st.spinner("Reading document..."):
            extracted = api_upload(uploaded)
        if extracted is not None:
            st.session_state.extracted = extracted
            st.session_state.uploaded_name = uploaded.name
            st.rerun()

    extracted = st.session_state.extracted
    if extracted:
        st.markdown(f"**{st.session_state.uploaded_name}**")
        with st.expander("📑 Extracted Fields", expanded=True):
            if "raw" in extracted and len(extracted) == 1:
                st.caption("The model did not return structured fields:")
                st.code(extracted["raw"])
            else:
                for k, v in extracted.items():
                    st.caption(f"**{k}**: {v or '—'}")

    if st.button("🧹 Clear history"):
        api_clear_history()
        st.rerun()


# ── Main ────────────────────────────────────────────────────────────────
st.title("🏦 Loan Document Assistant")
st.caption("Upload a loan document, review the extracted fields, and ask questions about it.")

if not st.session_state.extracted:
    st.info("Upload a document from the sidebar to get started.")
else:
    # Chat history (server-side, per session)
    for turn in api_history():
        with st.chat_message("user", avatar="👤"):
            st.markdown(turn["q"])
        with st.chat_message("assistant", avatar="🏦"):
            st.markdown(turn["a"])

    if question := st.chat_input("Ask about this document..."):
        with st.chat_message("user", avatar="👤"):
            st.markdown(question)
        with st.spinner("Thinking..."):
            answer = api_ask(question)
        if answer is not None:
            st.rerun()
