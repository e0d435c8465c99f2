import streamlit as st
import requests
import os
import logging

from src.ui.formatters import (
    abnormal_values_frame,
    failure_message,
    findings_frame,
    recommendation_groups,
    reports_frame,
)

# ==============================================================================
# Application Configuration
# ==============================================================================
st.set_page_config(
    page_title="Health Document Analyzer",
    page_icon="🩺",
    layout="wide"
)

# Setup basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

# --- API Endpoint Configuration ---
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", 8000))
API_BASE = f"http://{API_HOST}:{API_PORT}"
ANALYZE_ENDPOINT = f"{API_BASE}/analyze"
DASHBOARD_ENDPOINT = f"{API_BASE}/dashboard"

# ==============================================================================
# Main Application UI
# ==============================================================================

# --- Header Section ---
st.title("🩺 Health Document Analyzer")
st.markdown("""
Upload a lab result, imaging report or prescription. The document is checked,
analysed by AI, saved to your history and you earn reward tokens for it.
""")

wallet_address = st.sidebar.text_input("Wallet address")

# --- Wallet Dashboard ---
if wallet_address:
    try:
        response = requests.get(DASHBOARD_ENDPOINT, params={"walletAddress": wallet_address}, timeout=30)
        payload = response.json()
        if payload.get("success"):
            data = payload["data"]
            st.sidebar.metric("Tokens", data["user"]["tokens"])
            st.sidebar.metric("Reports this month", data["stats"]["reportsThisMonth"])
            st.sidebar.metric("Reports this week", data["stats"]["reportsThisWeek"])
            st.sidebar.dataframe(reports_frame(data))
        else:
            st.sidebar.info(payload.get("error", "No history yet."))
    except requests.exceptions.RequestException as e:
        st.sidebar.error(f"Could not load dashboard: {e}")

# --- File Uploader ---
st.header("1. Upload Your Health Document")
uploaded_file = st.file_uploader(
    "Choose a file (PDF, CSV, DOC, DOCX, PNG, JPEG)",
    type=['pdf', 'csv', 'doc', 'docx', 'png', 'jpg', 'jpeg']
)

# --- Processing and Result Display ---
if uploaded_file is not None and not wallet_address:
    st.warning("Enter your wallet address in the sidebar to analyse the document.")

elif uploaded_file is not None:
    logging.info(f"File uploaded: {uploaded_file.name}")

    with st.spinner('AI is reading and analyzing your document... This may take a moment.'):
        try:
            files = {'file': (uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type)}
            response = requests.post(
                ANALYZE_ENDPOINT, files=files, data={'walletAddress': wallet_address}, timeout=300
            )
            envelope = response.json()

            if response.status_code == 200 and envelope.get('success'):
                analysis = envelope['analysis']
                reward = envelope['tokenReward']
                st.success(f"Analysis Complete! You earned {reward['earned']} tokens (total {reward['total']}).")
                if reward['isNewUser']:
                    st.balloons()

                st.header(f"2. {analysis.get('title') or 'Your Report Analysis'}")
                col1, col2 = st.columns(2)

                with col1:
                    st.subheader("📋 Summary")
                    st.markdown(analysis.get('summary') or 'Summary could not be generated.')
                    risk = analysis.get('riskAssessment') or {}
                    if risk:
                        st.write(f"**Risk level:** {risk.get('level', 'n/a')}")
                        if risk.get('followUpRequired'):
                            st.write(f"**Follow-up:** {risk.get('followUpTiming') or 'recommended'}")

                with col2:
                    st.subheader("🔬 Findings")
                    st.dataframe(findings_frame(analysis))
                    abnormal = abnormal_values_frame(analysis)
                    if not abnormal.empty:
                        st.subheader("⚠️ Abnormal Values")
                        st.dataframe(abnormal)

                st.subheader("💡 Recommendations")
                for heading, items in recommendation_groups(analysis):
                    st.markdown(f"**{heading}**")
                    for item in items:
                        st.markdown(f"- {item}")

                with st.expander("Detailed analysis"):
                    st.markdown(analysis.get('detailedAnalysis', ''))
                    st.markdown(analysis.get('medicalContext', ''))
                st.caption(analysis.get('disclaimer', ''))
            else:
                st.error(f"Analysis Failed. (Status Code: {response.status_code})")
                st.markdown(failure_message(envelope))

        except requests.exceptions.RequestException as e:
            st.error(f"**Connection Error:** Could not connect to the API server. Error: {e}")
