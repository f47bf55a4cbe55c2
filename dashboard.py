"""
Admin dashboard for user-reported issues.

Run with: streamlit run dashboard.py
"""

import html
import json
import os
from dataclasses import dataclass
from typing import Callable, List, Optional

import altair as alt
import pandas as pd
import streamlit as st
import streamlit_shadcn_ui as ui
import streamlit.components.v1 as components

from dashboard_state import (
    HOME_ROUTE,
    DashboardController,
)
from issue_analytics import (
    IssueSummary,
    category_chart_frame,
    issues_frame,
    normalize_category,
    normalize_status,
    status_chart_frame,
)
from issue_api import delete_issue, update_issue_status
from issue_loader import run_initial_load
from issue_models import IssueRecord, LoadPhase
from session_auth import (
    SignInError,
    get_credential,
    sign_in,
    sign_out,
    supabase_configured,
)


CONTROLLER_KEY = "admin_dashboard_controller"
STATUS_OPTIONS = ["Pending", "In Progress", "Resolved"]

STATUS_COLORS = ["#f87171", "#fbbf24", "#34d399"]
STATUS_BORDER_COLORS = ["#fca5a5", "#fcd34d", "#6ee7b7"]
CATEGORY_BAR_COLOR = "#60a5fa"
CATEGORY_BAR_BORDER = "#3b82f6"
CHART_AXIS_LABEL_COLOR = "rgba(209, 213, 219, 0.85)"
CHART_AXIS_TITLE_COLOR = "rgba(156, 163, 175, 0.9)"
CHART_GRID_COLOR = "rgba(75, 85, 99, 0.35)"
CHART_DOMAIN_COLOR = "rgba(96, 165, 250, 0.45)"
CHART_VIEW_FILL = "rgba(31, 41, 55, 0.78)"


@dataclass
class BrowserRedirect:
    """Redirect handed to the browser. The page re-emits it on every rerun until cancelled."""

    delay: float
    target: str = HOME_ROUTE
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


def _home_url() -> str:
    return os.getenv("ADMIN_HOME_URL") or HOME_ROUTE


def _schedule_browser_redirect(delay: float, action: Callable[[], None]) -> BrowserRedirect:
    # The browser performs the navigation, so the Python-side action is not kept.
    return BrowserRedirect(delay=delay, target=_home_url())


def _apply_chart_theme(
    chart: alt.Chart, *, title: str, height: int = 300, view_fill: bool = True
) -> alt.Chart:
    configured = (
        chart.properties(title=title, height=height, background="transparent")
        .configure_view(
            fill=CHART_VIEW_FILL if view_fill else "transparent",
            stroke=None,
        )
        .configure_axis(
            labelColor=CHART_AXIS_LABEL_COLOR,
            titleColor=CHART_AXIS_TITLE_COLOR,
            gridColor=CHART_GRID_COLOR,
            tickColor=CHART_DOMAIN_COLOR,
            domainColor=CHART_DOMAIN_COLOR,
        )
        .configure_title(
            color="#c084fc",
            font="Inter",
            fontSize=16,
            anchor="middle",
            fontWeight=700,
        )
        .configure_legend(
            labelColor=CHART_AXIS_LABEL_COLOR,
            titleColor=CHART_AXIS_TITLE_COLOR,
            orient="top",
            direction="horizontal",
        )
    )
    return configured


def _metric_icon_svg(icon_key: str) -> str:
    icons = {
        "total": """
<svg viewBox="0 0 24 24" xmlns="http://www.w3.org/2000/svg">
  <rect x="4" y="14" width="4" height="6" rx="1.2" fill="#60a5fa"/>
  <rect x="10" y="9" width="4" height="11" rx="1.2" fill="#60a5fa"/>
  <rect x="16" y="5" width="4" height="15" rx="1.2" fill="#60a5fa"/>
</svg>
""",
        "pending": """
<svg viewBox="0 0 24 24" xmlns="http://www.w3.org/2000/svg">
  <circle cx="12" cy="12" r="9" fill="#eab308"/>
  <path d="M12 7v5l3 2" stroke="#1f2937" stroke-width="2" stroke-linecap="round" stroke-linejoin="round" fill="none"/>
</svg>
""",
        "resolved": """
<svg viewBox="0 0 24 24" xmlns="http://www.w3.org/2000/svg">
  <path d="M3 17l6-6 4 4 8-8" stroke="#22c55e" stroke-width="2.2" stroke-linecap="round" stroke-linejoin="round" fill="none"/>
  <path d="M15 7h6v6" stroke="#22c55e" stroke-width="2.2" stroke-linecap="round" stroke-linejoin="round" fill="none"/>
</svg>
""",
    }
    return icons.get(icon_key, icons["total"])


def _inject_theme() -> None:
    st.markdown(
        """
        <style>
            .stApp {
                background: #111827;
                color: #ffffff;
                font-family: 'Inter', sans-serif;
            }

            .stApp [data-testid="stToolbar"] {
                display: none;
            }

            .dashboard-title {
                font-size: 2.8rem;
                font-weight: 800;
                text-align: center;
                color: #60a5fa;
                margin: 0.5rem 0 2.2rem;
            }

            .section-title {
                font-size: 1.8rem;
                font-weight: 700;
                text-align: center;
                margin: 2.2rem 0 1.2rem;
                color: #60a5fa;
            }

            .metric-grid {
                display: grid;
                grid-template-columns: repeat(auto-fit, minmax(220px, 1fr));
                gap: 1.5rem;
                margin-bottom: 2.4rem;
            }

            .metric-card {
                display: flex;
                align-items: center;
                justify-content: space-between;
                border-radius: 12px;
                padding: 1.5rem;
                background: #1f2937;
                border: 1px solid rgba(96, 165, 250, 0.5);
                box-shadow: 0 14px 36px rgba(0, 0, 0, 0.45);
            }

            .metric-label {
                color: #9ca3af;
            }

            .metric-value {
                font-size: 2.2rem;
                font-weight: 700;
                color: #ffffff;
                margin-top: 0.25rem;
            }

            .metric-icon svg {
                width: 48px;
                height: 48px;
            }

            .chart-card__title {
                font-size: 1.2rem;
                font-weight: 700;
                color: #c084fc;
            }

            .issue-card {
                border-radius: 12px;
                padding: 1.2rem 1.4rem;
                background: #1f2937;
                border: 1px solid rgba(75, 85, 99, 0.8);
                margin-bottom: 0.6rem;
            }

            .issue-card__title {
                font-size: 1.1rem;
                font-weight: 600;
                margin: 0 0 0.4rem;
                color: #f9fafb;
            }

            .issue-card p {
                color: #d1d5db;
                font-size: 0.9rem;
            }

            .issue-card img {
                width: 100%;
                border-radius: 8px;
                margin-bottom: 0.6rem;
            }

            .issue-meta {
                font-size: 0.78rem;
                letter-spacing: 0.04em;
                color: #9ca3af;
            }

            .issue-badge {
                display: inline-flex;
                align-items: center;
                padding: 0.2rem 0.7rem;
                border-radius: 999px;
                font-size: 0.72rem;
                font-weight: 600;
                letter-spacing: 0.08em;
                text-transform: uppercase;
                margin-right: 0.4rem;
            }

            .issue-badge--pending {
                background: rgba(251, 191, 36, 0.2);
                color: #fcd34d;
            }

            .issue-badge--progress {
                background: rgba(96, 165, 250, 0.2);
                color: #93c5fd;
            }

            .issue-badge--resolved {
                background: rgba(52, 211, 153, 0.2);
                color: #6ee7b7;
            }

            .issue-badge--category {
                background: rgba(192, 132, 252, 0.18);
                color: #d8b4fe;
            }

            .empty-state {
                text-align: center;
                color: #9ca3af;
                font-size: 1.1rem;
            }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _card_key(issue_id: str, part: str) -> str:
    # Widget keys take any string; the raw id keeps distinct issues apart.
    return f"issue-{issue_id}-{part}"


def _trigger_rerun() -> None:
    st.rerun()


def _get_controller() -> DashboardController:
    controller = st.session_state.get(CONTROLLER_KEY)
    if not isinstance(controller, DashboardController) or controller.torn_down:
        controller = DashboardController(scheduler=_schedule_browser_redirect)
        st.session_state[CONTROLLER_KEY] = controller
    return controller


def _remount_controller() -> None:
    controller = st.session_state.pop(CONTROLLER_KEY, None)
    if isinstance(controller, DashboardController):
        controller.teardown()


def _render_pending_redirect(controller: DashboardController) -> None:
    redirect = controller.pending_navigation
    if not isinstance(redirect, BrowserRedirect) or redirect.cancelled:
        return
    delay_ms = int(redirect.delay * 1000)
    # The component iframe may not navigate the top window itself, so the timer
    # is installed in the parent document and survives reruns.
    components.html(
        f"""
        <script>
        (function() {{
            const host = window.parent ? window.parent : window;
            if (host.__adminRedirectScheduled) {{ return; }}
            host.__adminRedirectScheduled = true;
            const script = host.document.createElement("script");
            script.text = "setTimeout(function () {{ window.location.assign(" + {json.dumps(json.dumps(redirect.target))} + "); }}, {delay_ms});";
            host.document.body.appendChild(script);
        }})();
        </script>
        """,
        height=0,
        width=0,
    )


def auth_panel(credential: Optional[str]) -> None:
    with st.sidebar:
        st.markdown("#### Admin session")
        if not supabase_configured():
            if credential:
                st.caption("Using the configured API token.")
            else:
                st.caption("No credential configured. Set ADMIN_API_TOKEN or Supabase auth.")
            return

        if credential:
            if st.button("Sign out", key="admin-sign-out"):
                try:
                    sign_out()
                except SignInError as exc:
                    st.error(str(exc))
                _remount_controller()
                _trigger_rerun()
            return

        with st.form("admin_sign_in_form", clear_on_submit=False):
            email = st.text_input("Email", key="admin-email")
            password = st.text_input("Password", type="password", key="admin-password")
            submitted = st.form_submit_button("Sign in")

        if submitted:
            if not email or not password:
                st.warning("Enter both email and password.")
                return
            try:
                sign_in(email.strip(), password)
            except SignInError as exc:
                st.error(str(exc))
            else:
                _remount_controller()
                _trigger_rerun()


def kpi_section(summary: IssueSummary) -> None:
    metric_data = [
        {"key": "total", "title": "Total Issues", "value": summary.total},
        {"key": "pending", "title": "Pending Issues", "value": summary.pending},
        {"key": "resolved", "title": "Resolved Issues", "value": summary.resolved},
    ]

    cards_html = "".join(
        (
            f"<div class=\"metric-card metric-card--{spec['key']}\">"
            "<div>"
            f"<div class=\"metric-label\">{spec['title']}</div>"
            f"<div class=\"metric-value\">{spec['value']:,}</div>"
            "</div>"
            f"<div class=\"metric-icon\">{_metric_icon_svg(spec['key'])}</div>"
            "</div>"
        )
        for spec in metric_data
    )

    st.markdown(f"<div class='metric-grid'>{cards_html}</div>", unsafe_allow_html=True)


def _status_chart(data: pd.DataFrame, chart_type: str):
    base = alt.Chart(data)
    palette = alt.Scale(domain=list(data["Status"]), range=STATUS_COLORS)

    if chart_type == "Pie":
        chart = base.mark_arc(
            stroke=STATUS_BORDER_COLORS[0],
            strokeWidth=1,
        ).encode(
            theta=alt.Theta("Issues:Q", stack=True),
            color=alt.Color(
                "Status:N",
                scale=palette,
                sort=None,
                legend=alt.Legend(title=None, orient="top", labelLimit=160),
            ),
            tooltip=["Status", "Issues"],
        )
        return _apply_chart_theme(chart, title="Issues by Status", view_fill=False)

    chart = base.mark_bar(
        size=22,
        cornerRadiusTopLeft=6,
        cornerRadiusTopRight=6,
    ).encode(
        x=alt.X("Status:N", sort=None, title="Status"),
        y=alt.Y("Issues:Q", title="# of Issues"),
        color=alt.Color("Status:N", scale=palette, sort=None, legend=None),
        tooltip=["Status", "Issues"],
    )
    return _apply_chart_theme(chart, title="Issues by Status")


def _category_chart(data: pd.DataFrame, chart_type: str):
    base = alt.Chart(data)

    if chart_type == "Pie":
        chart = base.mark_arc(stroke=CATEGORY_BAR_BORDER, strokeWidth=1).encode(
            theta=alt.Theta("Issues:Q", stack=True),
            color=alt.Color(
                "Category:N",
                sort=None,
                legend=alt.Legend(title=None, orient="top", labelLimit=160),
            ),
            tooltip=["Category", "Issues"],
        )
        return _apply_chart_theme(chart, title="Issues by Category", view_fill=False)

    chart = base.mark_bar(
        size=28,
        color=CATEGORY_BAR_COLOR,
        stroke=CATEGORY_BAR_BORDER,
        strokeWidth=1,
    ).encode(
        x=alt.X("Category:N", sort=None, title="Category"),
        y=alt.Y("Issues:Q", title="# of Issues", axis=alt.Axis(tickMinStep=1)),
        tooltip=["Category", "Issues"],
    )
    return _apply_chart_theme(chart, title="Issues by Category")


def build_charts(summary: IssueSummary) -> None:
    if not summary.total:
        st.markdown(
            "<p class='empty-state'>Charts appear once issues are reported.</p>",
            unsafe_allow_html=True,
        )
        return

    col1, col2 = st.columns(2, gap="large")
    with col1:
        header_cols = st.columns([1, 1])
        with header_cols[0]:
            st.markdown(
                "<div class='chart-card__title'>Issues by Status</div>",
                unsafe_allow_html=True,
            )
        with header_cols[1]:
            status_chart_type = ui.tabs(
                options=["Pie", "Bar"],
                default_value="Pie",
                key="status_chart_type",
            )
        st.altair_chart(
            _status_chart(status_chart_frame(summary.status_counts), status_chart_type),
            width="stretch",
        )

    with col2:
        header_cols = st.columns([1, 1])
        with header_cols[0]:
            st.markdown(
                "<div class='chart-card__title'>Issues by Category</div>",
                unsafe_allow_html=True,
            )
        with header_cols[1]:
            category_chart_type = ui.tabs(
                options=["Bar", "Pie"],
                default_value="Bar",
                key="category_chart_type",
            )
        st.altair_chart(
            _category_chart(category_chart_frame(summary.category_counts), category_chart_type),
            width="stretch",
        )


def _status_badge_class(status: str) -> str:
    lowered = status.lower()
    if lowered == "resolved":
        return "issue-badge--resolved"
    if lowered == "pending":
        return "issue-badge--pending"
    return "issue-badge--progress"


def _status_options(current: str) -> List[str]:
    if current in STATUS_OPTIONS:
        return list(STATUS_OPTIONS)
    return [current] + STATUS_OPTIONS


def render_issue_card(
    issue: IssueRecord,
    credential: Optional[str],
    on_status_update: Callable[[IssueRecord], None],
    on_delete: Callable[[str], None],
) -> None:
    status = normalize_status(issue.status)
    category = normalize_category(issue.category)
    title = html.escape(str(issue.get("title") or "Untitled issue"))
    description = html.escape(str(issue.get("description") or ""))
    location = issue.get("location")
    image_url = issue.get("imageUrl") or issue.get("image")

    meta_bits = []
    if isinstance(location, str) and location:
        meta_bits.append(html.escape(location))
    created_at = pd.to_datetime(issue.get("createdAt"), errors="coerce")
    if pd.notna(created_at):
        meta_bits.append(created_at.strftime("%Y-%m-%d %H:%M"))

    image_html = (
        f"<img src=\"{html.escape(str(image_url), quote=True)}\" alt=\"{title}\"/>"
        if image_url
        else ""
    )
    card_html = f"""
    <div class='issue-card'>
        {image_html}
        <div class='issue-card__title'>{title}</div>
        <span class='issue-badge {_status_badge_class(status)}'>{html.escape(status)}</span>
        <span class='issue-badge issue-badge--category'>{html.escape(category)}</span>
        <p>{description}</p>
        <div class='issue-meta'>{" &bull; ".join(meta_bits)}</div>
    </div>
    """
    st.markdown(card_html, unsafe_allow_html=True)

    status_key = _card_key(issue.id, "status")
    update_key = _card_key(issue.id, "update")
    delete_key = _card_key(issue.id, "delete")

    options = _status_options(status)
    selected = st.selectbox(
        "Status",
        options,
        index=options.index(status),
        key=status_key,
    )
    update_col, delete_col = st.columns([1, 1], gap="small")
    with update_col:
        update_clicked = st.button(
            "Update status",
            key=update_key,
            disabled=selected == status,
            width="stretch",
        )
    with delete_col:
        delete_clicked = st.button(
            "Delete",
            key=delete_key,
            type="primary",
            width="stretch",
        )

    if update_clicked:
        try:
            payload = update_issue_status(issue.id, selected, credential)
            updated = IssueRecord.from_dict({**issue.to_dict(), **payload})
        except Exception as exc:
            st.error(f"Failed to update issue: {exc}")
        else:
            on_status_update(updated)
            _trigger_rerun()

    if delete_clicked:
        try:
            delete_issue(issue.id, credential)
        except Exception as exc:
            st.error(f"Failed to delete issue: {exc}")
        else:
            on_delete(issue.id)
            _trigger_rerun()


def issue_cards_section(controller: DashboardController, credential: Optional[str]) -> None:
    st.markdown("<div class='section-title'>Current Issues</div>", unsafe_allow_html=True)
    issues = controller.issues
    if not issues:
        st.markdown(
            "<p class='empty-state'>No issues to manage.</p>",
            unsafe_allow_html=True,
        )
        return

    columns = st.columns(3, gap="medium")
    for index, issue in enumerate(issues):
        with columns[index % 3]:
            render_issue_card(
                issue,
                credential,
                on_status_update=controller.on_issue_updated,
                on_delete=controller.on_issue_deleted,
            )


def main():
    st.set_page_config(page_title="Admin Dashboard", layout="wide")
    _inject_theme()

    controller = _get_controller()
    credential = get_credential()
    auth_panel(credential)

    if controller.load_phase is LoadPhase.LOADING:
        with st.spinner("Loading Dashboard..."):
            run_initial_load(controller, credential)

    st.markdown("<div class='dashboard-title'>🛠️ Admin Dashboard</div>", unsafe_allow_html=True)

    if controller.error_message:
        st.error(controller.error_message)
    _render_pending_redirect(controller)

    summary = controller.summary()
    kpi_section(summary)
    build_charts(summary)
    issue_cards_section(controller, credential)

    if controller.issues:
        with st.expander("Issue table", expanded=False):
            st.dataframe(issues_frame(controller.issues), width="stretch")


if __name__ == "__main__":
    main()
