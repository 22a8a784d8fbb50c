import streamlit as st

from config import ConsoleConfig

PHASE_BADGES = {
    'upcoming': ('⏳ Upcoming', '#2980B9'),
    'auto-active': ('🟢 Active', '#27AE60'),
    'force-active': ('⚡ Force active', '#F39C12'),
    'manual-permanent': ('📌 Manually active', '#8E44AD'),
    'expired': ('⌛ Expired', '#7F8C8D'),
    'disabled': ('⛔ Disabled', '#E74C3C'),
}


def apply_page_styles(config: ConsoleConfig):
    """
    Applies sidebar and layout styles. Text direction comes from the
    console configuration instead of a stored UI preference.
    """
    direction = config.text_direction
    align = 'right' if direction == 'rtl' else 'left'
    st.markdown(f"""
        <style>
            @import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;700&family=Tajawal:wght@400;700&display=swap');

            .stApp {{ direction: {direction}; }}
            [data-testid="stSidebar"] {{ direction: {direction}; }}
            h1, h2, h3, h4, h5, h6, p, li {{ text-align: {align}; }}

            /* --- Sidebar Links --- */
            [data-testid="stSidebarNav"] a {{
                font-family: 'Inter', sans-serif;
                font-size: 1.15em !important;
                padding: 10px 14px !important;
                margin-bottom: 6px;
                border-radius: 10px;
                transition: background-color 0.2s ease, color 0.2s ease;
            }}
            body[data-theme="light"] [data-testid="stSidebar"] {{ background-color: #f0f2f6; }}
            body[data-theme="light"] [data-testid="stSidebarNav"] a[aria-current="page"] {{
                background: linear-gradient(90deg, #9bbde0 0%, #7fa8cc 100%);
                color: white !important;
                font-weight: bold;
            }}
            body[data-theme="dark"] [data-testid="stSidebar"] {{ background-color: #0e1117; }}
            body[data-theme="dark"] [data-testid="stSidebarNav"] a[aria-current="page"] {{
                background-color: #3b82f6;
                color: white !important;
                font-weight: bold;
            }}

            /* --- Arabic text areas always read right-to-left --- */
            .arabic-text, textarea[aria-label*="Arabic"], input[aria-label*="Arabic"] {{
                direction: rtl;
                text-align: right;
                font-family: 'Tajawal', sans-serif;
            }}

            /* --- Status badges --- */
            .phase-badge {{
                display: inline-block;
                padding: 2px 10px;
                border-radius: 12px;
                color: white;
                font-size: 0.85em;
                font-weight: 600;
            }}
        </style>
    """, unsafe_allow_html=True)


def phase_badge(phase_value: str) -> str:
    label, colour = PHASE_BADGES.get(phase_value, (phase_value, '#95A5A6'))
    return f'<span class="phase-badge" style="background-color: {colour};">{label}</span>'
