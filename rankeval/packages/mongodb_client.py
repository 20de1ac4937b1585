"""
MongoDB client factory for creating database connections.
"""

import logging
from typing import Optional
from urllib.parse import quote_plus

from pymongo import MongoClient
from pymongo.collection import Collection

logger = logging.getLogger(__name__)


class MongoDBClient:
    """Factory for creating MongoDB client connections."""

    def __init__(self, uri: str, username: Optional[str] = None, password: Optional[str] = None):
        """Initialize MongoDB client configuration."""
        self.uri = uri
        self.username = username
        self.password = password

    def build_connection_string(self, base_uri: str, username: Optional[str], password: Optional[str]) -> str:
        """
        Construct MongoDB URI with credentials.
        Expected format: mongodb+srv://cluster.mongodb.net/?retryWrites=true&w=majority&appName=xxx
        """
        if "://" not in base_uri:
            raise ValueError(
                "Invalid MongoDB URI format. Expected format: mongodb+srv://cluster.mongodb.net/?retryWrites=true&w=majority")

        # Credentials already in the URI (or none configured)
        if not username or password is None:
            return base_uri

        protocol, rest = base_uri.split("://", 1)

        # Remove any existing credentials (username:password@)
        if "@" in rest:
            rest = rest.split("@", 1)[1]

        # URL-encode credentials to handle special characters
        encoded_username = quote_plus(username)
        encoded_password = quote_plus(password)

        return f"{protocol}://{encoded_username}:{encoded_password}@{rest}"

    def get_client(self) -> MongoClient:
        """Create and return a new MongoDB client instance."""
        connection_string = self.build_connection_string(self.uri, self.username, self.password)
        return MongoClient(connection_string)

    def get_collection(self, database_name: str, collection_name: str) -> Collection:
        logger.info(f"Connecting to collection {database_name}.{collection_name}")
        return self.get_client()[database_name][collection_name]
