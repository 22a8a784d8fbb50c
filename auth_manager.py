import logging
import time

import requests
import streamlit as st

logger = logging.getLogger(__name__)

# --- Configuration ---
SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
REFRESH_URL = "https://securetoken.googleapis.com/v1/token"
SESSION_KEYS = ['id_token', 'refresh_token', 'token_expires_at', 'operator_email', 'operator_uid']
# Refresh a little before the token actually expires
EXPIRY_MARGIN_SECONDS = 60


class AuthError(Exception):
    """Sign-in against Firebase Authentication failed."""


def _get_api_key():
    if "firebase_web_api_key" not in st.secrets:
        st.error("Secret [firebase_web_api_key] not found!")
        st.stop()
    return st.secrets["firebase_web_api_key"]


def sign_in(email: str, password: str, api_key: str) -> dict:
    """
    Signs an operator in with email and password.
    Returns the raw Firebase response (idToken, refreshToken, expiresIn, localId, email).
    """
    try:
        response = requests.post(
            SIGN_IN_URL,
            params={'key': api_key},
            json={'email': email, 'password': password, 'returnSecureToken': True},
            timeout=10,
        )
    except requests.RequestException as e:
        raise AuthError(f"Authentication service unreachable: {e}") from e

    if response.status_code != 200:
        try:
            reason = response.json().get('error', {}).get('message', 'UNKNOWN')
        except ValueError:
            reason = 'UNKNOWN'
        logger.warning("Sign-in rejected for %s: %s", email, reason)
        raise AuthError(reason)
    return response.json()


def refresh_id_token(refresh_token: str, api_key: str) -> dict:
    try:
        response = requests.post(
            REFRESH_URL,
            params={'key': api_key},
            data={'grant_type': 'refresh_token', 'refresh_token': refresh_token},
            timeout=10,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise AuthError(f"Session refresh failed: {e}") from e
    return response.json()


def _store_session(email: str, uid: str, id_token: str, refresh_token: str, expires_in):
    st.session_state.id_token = id_token
    st.session_state.refresh_token = refresh_token
    st.session_state.token_expires_at = time.time() + int(expires_in)
    st.session_state.operator_email = email
    st.session_state.operator_uid = uid


def _session_is_valid() -> bool:
    if 'id_token' not in st.session_state:
        return False
    if time.time() < st.session_state.get('token_expires_at', 0) - EXPIRY_MARGIN_SECONDS:
        return True
    # انتهت صلاحية الجلسة: نحاول تجديدها بصمت
    try:
        data = refresh_id_token(st.session_state.refresh_token, _get_api_key())
    except AuthError as e:
        logger.info("Session for %s expired: %s", st.session_state.get('operator_email'), e)
        return False
    _store_session(st.session_state.operator_email, data['user_id'], data['id_token'],
                   data['refresh_token'], data['expires_in'])
    return True


def require_operator() -> str:
    """
    Returns the signed-in operator's email, or shows the sign-in form and
    stops the page.
    """
    if _session_is_valid():
        return st.session_state.operator_email

    st.title("🔐 Admin Console Sign In")
    with st.form("sign_in_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", use_container_width=True, type="primary")

    if submitted:
        if not email or not password:
            st.error("Please enter your email and password.")
        else:
            try:
                data = sign_in(email.strip(), password, _get_api_key())
            except AuthError as e:
                st.error(f"Sign-in failed: {e}")
            else:
                _store_session(data['email'], data['localId'], data['idToken'],
                               data['refreshToken'], data['expiresIn'])
                logger.info("Operator %s signed in", data['email'])
                st.rerun()
    st.stop()


def logout():
    """
    Clears all session information and logs the operator out.
    """
    for key in SESSION_KEYS:
        if key in st.session_state:
            del st.session_state[key]
    st.success("Signed out. Redirecting...")
    time.sleep(1)
    st.rerun()
