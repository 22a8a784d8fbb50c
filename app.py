import streamlit as st

import activation
import auth_manager
import db_manager as db
import style_manager
from main import run_status_refresh
from utils import display_name, init_page, load_or_stop, phase_for, timed_record, utcnow

config, operator = init_page("Home", "🏠")

# --- Sidebar ---
st.sidebar.title("Admin Console")
st.sidebar.success(f"Welcome! {operator}")

if st.sidebar.button("🚪 Sign out", use_container_width=True):
    auth_manager.logout()

st.sidebar.divider()

if st.sidebar.button("🔄 Refresh statuses now", type="primary", use_container_width=True):
    with st.spinner("Re-evaluating activities and live news..."):
        update_log = run_status_refresh(config=config)
        st.session_state['update_log'] = update_log
    st.toast("Status refresh finished.", icon="✅")
    st.cache_data.clear()

if 'update_log' in st.session_state:
    st.sidebar.info("The last status refresh has finished.")
    with st.sidebar.expander("Show refresh log"):
        for message in st.session_state.update_log:
            st.text(message)
    del st.session_state['update_log']

st.sidebar.caption(f"Statuses refresh automatically every {config.refresh_interval_seconds} seconds.")

# --- Main Page Content ---
st.title("🏠 Content Admin Console")
st.markdown("Manage martyrs, locations, legends, activities and news shown on the public site.")

now = utcnow()
activities = load_or_stop(db.ACTIVITIES)
news = load_or_stop(db.NEWS)

visible_activities = [a for a in activities if phase_for(a, db.ACTIVITIES, now, config) in
                      {p.value for p in activation.VISIBLE_PHASES}]
live_now = [n for n in news if phase_for(n, db.NEWS, now, config) in
            {p.value for p in activation.VISIBLE_PHASES}]

col1, col2, col3, col4 = st.columns(4)
col1.metric("📅 Activities", len(activities))
col2.metric("🟢 Visible activities", len(visible_activities))
col3.metric("📰 News", len(news))
col4.metric("🔴 Live now", len(live_now))

st.divider()
st.subheader("🔴 Live right now")
if not live_now:
    st.info("No live news is on air.")
for item in live_now:
    record = timed_record(item, db.NEWS, config)
    remaining = activation.remaining_time(now, record) if record else None
    badge = style_manager.phase_badge(phase_for(item, db.NEWS, now, config))
    left = activation.format_remaining(remaining) if remaining is not None else "until turned off"
    st.markdown(f"**{display_name(item)}** &nbsp; {badge} &nbsp; `{left}`", unsafe_allow_html=True)

st.subheader("📅 Upcoming activities")
upcoming = [a for a in activities
            if phase_for(a, db.ACTIVITIES, now, config) == activation.Phase.UPCOMING.value]
if not upcoming:
    st.info("No activities are scheduled.")
for item in sorted(upcoming, key=lambda a: activation.as_utc(a['date']))[:10]:
    st.markdown(f"- **{display_name(item)}**: starts {item['date']:%Y-%m-%d %H:%M} UTC")
