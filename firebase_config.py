import json
import logging
import os

import firebase_admin
import streamlit as st
from firebase_admin import credentials, firestore, storage

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_FILE = 'firebase_service_account.json'


class FirebaseConfigError(Exception):
    """Raised when no usable Firebase credentials can be found."""


def _load_credentials():
    """
    Reads the service account from Streamlit Secrets for deployment,
    or from a local file for local development.
    """
    try:
        has_secret = 'firebase_credentials' in st.secrets
    except Exception as e:
        logger.debug("Streamlit secrets unavailable: %s", e)
        has_secret = False

    if has_secret:
        # المفتاح مخزن كنص JSON في أسرار Streamlit
        creds_dict = json.loads(st.secrets["firebase_credentials"])
        return credentials.Certificate(creds_dict)

    if not os.path.exists(SERVICE_ACCOUNT_FILE):
        raise FirebaseConfigError(
            f"Service account file '{SERVICE_ACCOUNT_FILE}' not found and no "
            "'firebase_credentials' secret is set."
        )
    return credentials.Certificate(SERVICE_ACCOUNT_FILE)


def initialize_firebase_app(storage_bucket: str = ""):
    """Initializes the Firebase Admin SDK once per process."""
    if not firebase_admin._apps:
        options = {'storageBucket': storage_bucket} if storage_bucket else None
        firebase_admin.initialize_app(_load_credentials(), options)
        logger.info("Firebase app initialized")
    return firebase_admin.get_app()


@st.cache_resource
def get_db(storage_bucket: str = ""):
    """Returns a cached Firestore client."""
    initialize_firebase_app(storage_bucket)
    return firestore.client()


@st.cache_resource
def get_bucket(storage_bucket: str = ""):
    """Returns the cached default Storage bucket (or the named one)."""
    initialize_firebase_app(storage_bucket)
    return storage.bucket(storage_bucket or None)
