"""
Status section component for the Streamlit dashboard.
Shows the per-API connection table and request counters.
"""
import streamlit as st


def render_status_section(status: dict):
    """
    Render the connection table.

    Args:
        status: Payload of GET /api/dashboard/status
    """
    col1, col2, col3 = st.columns(3)
    stats = status.get("stats", {})
    col1.metric("APIs connected", f"{status.get('connected', 0)}/{status.get('total', 0)}")
    col2.metric("Requests", stats.get("total_requests", 0))
    col3.metric("Failed", stats.get("failed", 0))

    rows = status.get("rows", [])
    st.dataframe(
        [
            {"API": r["api"], "Status": r["status"], "Last Check": r["last_check"], "Endpoint": r["endpoint"]}
            for r in rows
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_sync_summary(summary: dict):
    """Record counts per system from POST /api/dashboard/sync."""
    st.subheader("📊 Sync Summary")
    for label, count in summary.items():
        st.write(f"• **{label}**: {count}")
