"""Streamlit UI for the Health Assistant."""

import os
import uuid

import requests
import streamlit as st

API_URL = os.environ.get("API_URL", "http://localhost:8000")

SEVERITIES = ["mild", "moderate", "severe"]

CATEGORY_BOXES = {
    "warning": st.warning,
    "success": st.success,
    "info": st.info,
}

st.set_page_config(page_title="Health Assistant", layout="wide")
st.title("Health Assistant")
st.markdown("Understand your symptoms and get basic health guidance")

st.warning(
    "**Important disclaimer:** This assistant provides general health guidance only and is "
    "not a substitute for professional medical advice, diagnosis, or treatment. Always seek "
    "the advice of your physician or other qualified health provider with any questions "
    "you may have regarding a medical condition."
)
st.divider()

try:
    requests.get(f"{API_URL}/health", timeout=5)
except Exception:
    st.error(f"Could not connect to API at {API_URL}. Is the FastAPI server running?")
    st.stop()

if "session_id" not in st.session_state:
    st.session_state.session_id = str(uuid.uuid4())

session_id = st.session_state.session_id


def render_message(msg: dict) -> None:
    role = msg["origin"]
    with st.chat_message(role):
        box = CATEGORY_BOXES.get(msg["category"]) if role == "assistant" else None
        if box:
            box(msg["text"])
        else:
            st.markdown(msg["text"])
        st.caption(msg["created_at"][11:16])


def fetch_history() -> list[dict]:
    resp = requests.get(f"{API_URL}/chat/{session_id}/history", timeout=5)
    if resp.status_code == 404:
        return []
    resp.raise_for_status()
    return resp.json()["messages"]


def fetch_symptoms() -> list[dict]:
    resp = requests.get(f"{API_URL}/chat/{session_id}/symptoms", timeout=5)
    if resp.status_code == 404:
        return []
    resp.raise_for_status()
    return resp.json()["symptoms"]


tab_chat, tab_tracker = st.tabs(["Chat", "Symptom Tracker"])


# -- Chat Tab --

with tab_chat:
    if st.button("New Chat", key="new_chat"):
        requests.delete(f"{API_URL}/chat/{session_id}", timeout=5)
        st.session_state.session_id = str(uuid.uuid4())
        st.rerun()

    chat_container = st.container()
    user_input = st.chat_input("Describe your symptoms...")

    with chat_container:
        try:
            for msg in fetch_history():
                render_message(msg)
        except Exception as e:
            st.error(f"Could not load conversation: {str(e)}")

        if user_input:
            with st.chat_message("user"):
                st.markdown(user_input)

            with st.spinner("Assistant is typing..."):
                try:
                    resp = requests.post(
                        f"{API_URL}/chat",
                        json={"session_id": session_id, "message": user_input},
                        timeout=30,
                    )
                    if resp.status_code == 200:
                        st.rerun()
                    elif resp.status_code == 409:
                        st.info("Please wait for the assistant to finish responding.")
                    else:
                        st.error(f"API error: {resp.status_code} - {resp.text}")
                except requests.exceptions.Timeout:
                    st.error("Request timed out. Please try again.")
                except Exception as e:
                    st.error(f"Error: {str(e)}")


# -- Symptom Tracker Tab --

with tab_tracker:
    st.subheader("Record your symptoms")

    with st.form("add_symptom", clear_on_submit=True):
        col1, col2, col3 = st.columns([2, 1, 1])
        name = col1.text_input("Symptom", placeholder="e.g. runny nose")
        severity = col2.selectbox("Severity", SEVERITIES, index=1)
        duration = col3.text_input("Duration", placeholder="e.g. 2 days")
        if st.form_submit_button("Add Symptom") and name.strip():
            requests.post(
                f"{API_URL}/chat/{session_id}/symptoms",
                json={"name": name, "severity": severity, "duration": duration or None},
                timeout=5,
            )

    try:
        symptoms = fetch_symptoms()
    except Exception as e:
        st.error(f"Could not load symptoms: {str(e)}")
        symptoms = []

    for symptom in symptoms:
        record_id = symptom["record_id"]
        col1, col2, col3 = st.columns([3, 2, 1])
        col1.markdown(f"**{symptom['name']}** ({symptom['duration']})")
        chosen = col2.selectbox(
            "Severity",
            SEVERITIES,
            index=SEVERITIES.index(symptom["severity"]),
            key=f"severity_{record_id}",
            label_visibility="collapsed",
        )
        if chosen != symptom["severity"]:
            requests.patch(
                f"{API_URL}/chat/{session_id}/symptoms/{record_id}",
                json={"severity": chosen},
                timeout=5,
            )
            st.rerun()
        if col3.button("Remove", key=f"remove_{record_id}"):
            requests.delete(f"{API_URL}/chat/{session_id}/symptoms/{record_id}", timeout=5)
            st.rerun()

    if st.button("Analyze Symptoms", type="primary", use_container_width=True):
        with st.spinner("Analyzing your symptoms..."):
            try:
                resp = requests.post(f"{API_URL}/chat/{session_id}/analyze", timeout=30)
                if resp.status_code == 200:
                    result = resp.json()
                    box = CATEGORY_BOXES.get(result["category"], st.info)
                    box(result["answer"])
                elif resp.status_code in (400, 404):
                    st.warning("Please add at least one symptom before requesting an analysis.")
                else:
                    st.error(f"API error: {resp.status_code} - {resp.text}")
            except requests.exceptions.Timeout:
                st.error("Request timed out. Please try again.")
            except Exception as e:
                st.error(f"Error: {str(e)}")
