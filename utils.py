from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import streamlit as st

import activation
import auth_manager
import content_forms
import db_manager as db
import file_storage
import style_manager
import translation_service
from config import load_config, setup_logging
from firebase_config import get_bucket
from scheduler import get_refresh_scheduler

# Shared palette for charts and status badges
CHART_COLORS = {
    "primary": "#2980B9",      # upcoming
    "secondary": "#8E44AD",    # manual
    "accent_1": "#27AE60",     # active
    "accent_2": "#F39C12",     # forced
    "accent_3": "#E74C3C",     # disabled
    "text_main": "#2c3e50",
    "text_light": "#5D6D7E",
    "grid": "#ecf0f1",
    "background": "rgba(0,0,0,0)"
}

PHASE_COLORS = {
    activation.Phase.UPCOMING.value: CHART_COLORS["primary"],
    activation.Phase.AUTO_ACTIVE.value: CHART_COLORS["accent_1"],
    activation.Phase.FORCE_ACTIVE.value: CHART_COLORS["accent_2"],
    activation.Phase.MANUAL_PERMANENT.value: CHART_COLORS["secondary"],
    activation.Phase.EXPIRED.value: "#7F8C8D",
    activation.Phase.DISABLED.value: CHART_COLORS["accent_3"],
}


def apply_chart_theme(fig, chart_type='default'):
    """
    Applies a consistent, modern theme to a Plotly figure.

    Args:
        fig (go.Figure): The figure object to style.
        chart_type (str): 'area', 'bar', 'pie' or 'default'.

    Returns:
        go.Figure: The styled figure object.
    """
    fig.update_layout(
        font=dict(family="sans-serif", size=12, color=CHART_COLORS["text_main"]),
        paper_bgcolor=CHART_COLORS["background"],
        plot_bgcolor=CHART_COLORS["background"],
        margin=dict(l=10, r=10, t=50, b=10),
        xaxis=dict(gridcolor=CHART_COLORS["grid"], zeroline=False, showline=False,
                   tickfont=dict(color=CHART_COLORS["text_light"])),
        yaxis=dict(gridcolor=CHART_COLORS["grid"], zeroline=False, showline=False,
                   tickfont=dict(color=CHART_COLORS["text_light"])),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        hovermode="x unified"
    )

    if chart_type == 'area':
        fig.update_traces(
            line=dict(color=CHART_COLORS["accent_1"], width=2.5),
            fill='tozeroy',
            fillcolor='rgba(39, 174, 96, 0.1)'
        )
    elif chart_type == 'bar':
        fig.update_traces(marker_line_width=0)
    elif chart_type == 'pie':
        fig.update_traces(
            hoverinfo='label+percent',
            textinfo='percent',
            textfont_size=14,
            marker=dict(line=dict(color='#ffffff', width=2))
        )

    return fig


def utcnow():
    return datetime.now(timezone.utc)


def phase_for(doc: dict, collection_name: str, now: datetime = None, config=None):
    """
    Phase value of an activity / live news document as of `now`, reconciled
    against the clock, or None for untimed or unreadable records.
    """
    default_hours = config.default_hours_for(collection_name) if config else None
    phase = content_forms.record_phase(doc, collection_name, now or utcnow(), default_hours)
    return phase.value if phase else None


def timed_record(doc: dict, collection_name: str, config=None):
    """The evaluator's view of a document using the configured default durations."""
    default_hours = config.default_hours_for(collection_name) if config else None
    return content_forms.timed_record_or_none(doc, collection_name, default_hours)


def show_notice(success: bool, message: str):
    """Dismissible notice for a service result; failures ask the operator to retry."""
    if success:
        st.toast(message, icon="✅")
    else:
        st.error(f"{message} Please try again.")


def init_page(page_title: str, page_icon: str):
    """
    Common start of every page: page config, logging, styles, sign-in and
    the shared refresh timer.

    Returns:
        tuple[ConsoleConfig, str]: the console configuration and the operator's email.
    """
    st.set_page_config(page_title=f"{page_title} | Admin Console", page_icon=page_icon, layout="wide")
    config = load_config()
    setup_logging(config.log_level)
    style_manager.apply_page_styles(config)
    operator = auth_manager.require_operator()
    get_refresh_scheduler(config)
    return config, operator


@st.cache_data(ttl=60)
def load_collection(collection_name: str) -> list:
    return db.list_documents(collection_name)


def load_or_stop(collection_name: str) -> list:
    """Loads a collection for display; a failed read stops the page with a retry prompt."""
    try:
        return load_collection(collection_name)
    except db.ContentServiceError as e:
        st.error(f"{e}. Please try again.")
        if st.button("🔄 Retry"):
            st.cache_data.clear()
            st.rerun()
        st.stop()


def after_write(success: bool, message: str):
    show_notice(success, message)
    if success:
        st.cache_data.clear()


def clear_form_state(key_prefix: str):
    for key in [k for k in st.session_state.keys() if str(k).startswith(key_prefix)]:
        del st.session_state[key]


def _translate_into(source_key: str, target_key: str, source_field: str, config):
    text = st.session_state.get(source_key, '')
    try:
        _, translated = translation_service.translate_field(
            {source_field: text}, source_field, url=config.translate_url, timeout=config.translate_timeout)
    except translation_service.TranslationError as e:
        st.warning(str(e))
        return
    st.session_state[target_key] = translated


def bilingual_input(field_prefix: str, label: str, key_prefix: str, config, defaults: dict = None, area: bool = False) -> dict:
    """
    Renders an English / Arabic pair with a translate button under each
    side. Translation only fills the other side and never runs by itself.
    """
    defaults = defaults or {}
    widget = st.text_area if area else st.text_input
    en_field, ar_field = f"{field_prefix}En", f"{field_prefix}Ar"
    en_key, ar_key = f"{key_prefix}_{en_field}", f"{key_prefix}_{ar_field}"
    for key, field in ((en_key, en_field), (ar_key, ar_field)):
        if key not in st.session_state:
            st.session_state[key] = defaults.get(field) or ''

    col_en, col_ar = st.columns(2)
    with col_en:
        en_value = widget(f"{label} (English)", key=en_key)
        st.button("Translate to Arabic ➡️", key=f"{en_key}_translate",
                  on_click=_translate_into, args=(en_key, ar_key, en_field, config))
    with col_ar:
        ar_value = widget(f"{label} (Arabic)", key=ar_key)
        st.button("⬅️ Translate to English", key=f"{ar_key}_translate",
                  on_click=_translate_into, args=(ar_key, en_key, ar_field, config))
    return {en_field: en_value, ar_field: ar_value}


def display_name(doc: dict) -> str:
    return doc.get('nameEn') or doc.get('titleEn') or doc.get('nameAr') or doc.get('titleAr') or doc.get('id', '')


def as_local(moment, tz_name: str):
    """UTC timestamp from Firestore -> console local time, for display and form defaults."""
    if not isinstance(moment, datetime):
        return None
    return activation.as_utc(moment).astimezone(ZoneInfo(tz_name))


IMAGE_TYPES = ['png', 'jpg', 'jpeg', 'webp']
VIDEO_TYPES = ['mp4', 'mov', 'webm']
MEDIA_FIELDS = ('mainImage', 'mainIcon', 'photos', 'videos')


def media_uploaders(key_prefix: str, main_field: str = None, galleries: bool = True) -> dict:
    """File pickers for a record's media; returns field -> chosen file(s)."""
    files = {}
    if main_field:
        label = "Main icon" if main_field == 'mainIcon' else "Main image"
        files[main_field] = st.file_uploader(label, type=IMAGE_TYPES, key=f"{key_prefix}_{main_field}")
    if galleries:
        files['photos'] = st.file_uploader("Photos", type=IMAGE_TYPES, accept_multiple_files=True,
                                           key=f"{key_prefix}_photos")
        files['videos'] = st.file_uploader("Videos", type=VIDEO_TYPES, accept_multiple_files=True,
                                           key=f"{key_prefix}_videos")
    return files


def store_media(config, collection_name: str, doc_id: str, files: dict, existing: dict = None) -> dict:
    """
    Uploads the chosen files and returns the document updates. Gallery URLs
    are appended to what the record already has; a new main image replaces
    the old one. Raises StorageError.
    """
    existing = existing or {}
    bucket = get_bucket(config.storage_bucket)
    updates = {}
    for field, chosen in files.items():
        if not chosen:
            continue
        if isinstance(chosen, list):
            folder = file_storage.folder_path(collection_name, doc_id, field)
            uploaded = file_storage.upload_streamlit_files(bucket, chosen, folder)
            updates[field] = list(existing.get(field) or []) + [f.url for f in uploaded]
        else:
            folder = file_storage.folder_path(collection_name, doc_id, 'main')
            updates[field] = file_storage.upload_streamlit_files(bucket, [chosen], folder)[0].url
    return updates


def save_media(config, collection_name: str, doc_id: str, files: dict, existing: dict = None):
    """Uploads media for a saved record and writes the URLs back. Returns (success, message)."""
    if not any(files.values()):
        return True, "No media to upload."
    try:
        updates = store_media(config, collection_name, doc_id, files, existing)
    except file_storage.StorageError as e:
        return False, f"The record was saved but its media could not be uploaded: {e}."
    return db.update_document(collection_name, doc_id, updates)


def delete_media(config, doc: dict) -> list:
    """Deletes every stored file of a record; returns the URLs that could not be removed."""
    urls = []
    for field in MEDIA_FIELDS:
        value = doc.get(field)
        for url in (value if isinstance(value, list) else [value]):
            # old records keep base64 images inline
            if isinstance(url, str) and url.startswith('http'):
                urls.append(url)
    if not urls:
        return []
    return file_storage.delete_files(get_bucket(config.storage_bucket), urls)


@st.dialog("🚫 Confirm deletion")
def confirm_delete(collection_name: str, doc: dict, operator: str, config, entity_type: str = None):
    name = display_name(doc)
    st.warning(f"You are about to delete '{name}' permanently. This cannot be undone.")
    col1, col2 = st.columns(2)
    if col1.button("❌ Delete permanently", type="primary", use_container_width=True):
        success, message = db.delete_document(collection_name, doc['id'], name, operator, entity_type)
        if success:
            failed = delete_media(config, doc)
            if failed:
                st.warning(f"{len(failed)} file(s) could not be removed from storage.")
        after_write(success, message)
        if success:
            st.rerun()
    if col2.button("Cancel", use_container_width=True):
        st.rerun()
