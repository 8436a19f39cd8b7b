"""
Main Streamlit application for the Master Control Dashboard.
Shows vendor connection status with test, sync and report actions.
"""
import streamlit as st
from components.status_section import render_status_section, render_sync_summary
from services.api_client import generate_report, get_status, sync_systems, test_connections
from config.settings import PAGE_CONFIG


def main():
    """
    Main application entry point.
    """
    st.set_page_config(**PAGE_CONFIG)

    if "last_sync" not in st.session_state:
        st.session_state.last_sync = None

    st.title("🍷 Legacy Wine & Liquor - Master Control")

    col1, col2, col3 = st.columns(3)
    if col1.button("🔌 Test Connections", use_container_width=True):
        with st.spinner("Testing API connections..."):
            result = test_connections()
        if not result["success"]:
            st.error(result["message"])

    if col2.button("🔄 Sync All Systems", use_container_width=True):
        with st.spinner("Synchronizing..."):
            result = sync_systems()
        if result["success"]:
            st.session_state.last_sync = result["data"]
        else:
            st.error(result["message"])

    if col3.button("📈 Generate Report", use_container_width=True):
        result = generate_report()
        if result["success"]:
            st.success(f"Report saved to: {result['data']['path']}")
        else:
            st.error(result["message"])

    status = get_status()
    if status["success"]:
        render_status_section(status["data"])
    else:
        st.error(status["message"])

    if st.session_state.last_sync:
        render_sync_summary(st.session_state.last_sync)


if __name__ == "__main__":
    main()
