"""Firestore REST backend and Firebase ID token verification."""

from journalshare.infrastructure.firebase._rest_client import FirestoreRESTClient
from journalshare.infrastructure.firebase.client import close_firebase, init_firebase

__all__ = ["FirestoreRESTClient", "close_firebase", "init_firebase"]
