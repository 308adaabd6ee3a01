# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB case store with connection pooling and atomic claim operations.
"""

import logging
from typing import Any, Dict, List, Optional
from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError,
    PyMongoError
)
from bson import ObjectId
from bson.errors import InvalidId
from opentelemetry import trace

from domain.exceptions import Conflict, NotFound, StorageError
from models.base import utcnow
from models.entities import Case, NgoContact, NgoProfile, UserContext
from models.enums import CaseStatus, CaseType, UserRole
from services.store import ANY

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CASES = "cases"
USERS = "users"
NGO_PROFILES = "ngo_profiles"

# Case model field -> persisted document field
CASE_FIELDS = {
    "title": "title",
    "description": "description",
    "kind": "type",
    "severity": "severity",
    "status": "status",
    "latitude": "latitude",
    "longitude": "longitude",
    "image_url": "imageUrl",
    "animal_type": "animalType",
    "animal_count": "animalCount",
    "tags": "tags",
    "reported_by": "reportedById",
    "assigned_ngo_id": "assignedNgoId",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def _plain(value: Any) -> Any:
    """Unwrap enum members to their stored value."""
    return getattr(value, "value", value)


def case_to_document(case: Case) -> Dict[str, Any]:
    """Convert a Case model to a MongoDB document."""
    document = {"_id": ObjectId(case.id)}
    for field, column in CASE_FIELDS.items():
        document[column] = _plain(getattr(case, field))
    return document


def case_from_document(document: Dict[str, Any]) -> Case:
    """Convert a MongoDB document to a Case model."""
    data = {"id": str(document["_id"])}
    for field, column in CASE_FIELDS.items():
        if column in document:
            data[field] = document[column]
    return Case.model_validate(data)


class MongoCaseStore:
    """``CaseStore`` backed by MongoDB collections ``cases``, ``users`` and ``ngo_profiles``."""

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        max_pool_size: int = 10,
        server_selection_timeout_ms: int = 5000,
        socket_timeout_ms: int = 10000,
        client: Optional[MongoClient] = None
    ):
        """Initialize the store; the client connects lazily on first use."""
        self.connection_string = connection_string
        self.database_name = database_name
        self.max_pool_size = max_pool_size
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.socket_timeout_ms = socket_timeout_ms
        self._client: Optional[MongoClient] = client
        self._database: Optional[Database] = None

        logger.info(f"MongoDB case store initialized for database: {self.database_name}")

    @classmethod
    def from_settings(cls, settings) -> "MongoCaseStore":
        """Build a store from application settings."""
        return cls(
            settings.mongodb_uri,
            settings.mongodb_database,
            max_pool_size=settings.mongodb_max_pool_size,
            server_selection_timeout_ms=settings.mongodb_server_selection_timeout_ms,
            socket_timeout_ms=settings.mongodb_socket_timeout_ms
        )

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    socketTimeoutMS=self.socket_timeout_ms,
                    connectTimeoutMS=self.server_selection_timeout_ms,
                    tz_aware=True,
                    retryWrites=True,
                    retryReads=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                self._client = None
                raise StorageError("Could not connect to MongoDB") from e

        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.client.admin.command('ping')
            return {
                'status': 'healthy',
                'backend': 'mongodb',
                'ping': result.get('ok') == 1,
                'database': self.database_name
            }
        except (PyMongoError, StorageError) as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'backend': 'mongodb',
                'error': str(e),
                'database': self.database_name
            }

    def _object_id(self, doc_id: str) -> Optional[ObjectId]:
        """Convert a string ID to ObjectId, or None when malformed."""
        try:
            return ObjectId(doc_id)
        except (InvalidId, TypeError):
            logger.debug(f"Invalid ObjectId format: {doc_id}")
            return None

    def _require_object_id(self, doc_id: str) -> ObjectId:
        object_id = self._object_id(doc_id)
        if object_id is None:
            raise NotFound("Case not found")
        return object_id

    def _missing_or_conflict(self, object_id: ObjectId, message: str) -> Exception:
        """Explain why a conditional write matched nothing."""
        exists = self.get_collection(CASES).count_documents({"_id": object_id}, limit=1)
        return Conflict(message) if exists else NotFound("Case not found")

    # Cases

    def get_case(self, case_id: str) -> Optional[Case]:
        object_id = self._object_id(case_id)
        if object_id is None:
            return None
        try:
            document = self.get_collection(CASES).find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Failed to find case {case_id}: {e}")
            raise StorageError("Failed to load case") from e
        return case_from_document(document) if document else None

    def create_case(self, case: Case) -> Case:
        try:
            result = self.get_collection(CASES).insert_one(case_to_document(case))
            logger.info(f"Created case: {result.inserted_id}")
            return case
        except DuplicateKeyError as e:
            logger.error(f"Duplicate case id {case.id}: {e}")
            raise Conflict(f"Case {case.id} already exists") from e
        except PyMongoError as e:
            logger.error(f"Failed to create case: {e}")
            raise StorageError("Failed to create case") from e

    def update_case(self, case_id: str, changes: Dict[str, Any]) -> Case:
        object_id = self._require_object_id(case_id)
        updates = {CASE_FIELDS[field]: _plain(value) for field, value in changes.items()}
        updates["updatedAt"] = utcnow()
        try:
            document = self.get_collection(CASES).find_one_and_update(
                {"_id": object_id},
                {"$set": updates},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            logger.error(f"Failed to update case {case_id}: {e}")
            raise StorageError("Failed to update case") from e
        if document is None:
            raise NotFound("Case not found")
        logger.info(f"Updated case {case_id}")
        return case_from_document(document)

    def delete_case(self, case_id: str, expected_assigned_ngo_id: Any = ANY) -> Case:
        object_id = self._require_object_id(case_id)
        query: Dict[str, Any] = {"_id": object_id}
        if expected_assigned_ngo_id is not ANY:
            query["assignedNgoId"] = expected_assigned_ngo_id
        try:
            document = self.get_collection(CASES).find_one_and_delete(query)
            if document is None:
                raise self._missing_or_conflict(object_id, "Case assignment changed before deletion")
        except PyMongoError as e:
            logger.error(f"Failed to delete case {case_id}: {e}")
            raise StorageError("Failed to delete case") from e
        logger.warning(f"Deleted case {case_id}")
        return case_from_document(document)

    def _find_cases(self, query: Dict[str, Any]) -> List[Case]:
        try:
            cursor = self.get_collection(CASES).find(query).sort("createdAt", DESCENDING)
            documents = list(cursor)
        except PyMongoError as e:
            logger.error(f"Failed to list cases: {e}")
            raise StorageError("Failed to list cases") from e
        logger.debug(f"Found {len(documents)} cases")
        return [case_from_document(doc) for doc in documents]

    def list_operational_cases(self) -> List[Case]:
        return self._find_cases({"type": {"$ne": CaseType.ADOPTION.value}})

    def list_adoptions(self) -> List[Case]:
        return self._find_cases({"type": CaseType.ADOPTION.value})

    def compare_and_assign(
        self,
        case_id: str,
        expected_assigned_ngo_id: Optional[str],
        new_assigned_ngo_id: Optional[str],
        new_status: CaseStatus,
    ) -> Case:
        """Single-document conditional update: the filter carries the expected assignee."""
        with tracer.start_as_current_span("store.mongodb.compare_and_assign") as span:
            span.set_attributes({
                "db.collection": CASES,
                "db.operation": "find_one_and_update",
                "case.id": case_id
            })
            object_id = self._require_object_id(case_id)
            try:
                document = self.get_collection(CASES).find_one_and_update(
                    {"_id": object_id, "assignedNgoId": expected_assigned_ngo_id},
                    {"$set": {
                        "assignedNgoId": new_assigned_ngo_id,
                        "status": _plain(new_status),
                        "updatedAt": utcnow()
                    }},
                    return_document=ReturnDocument.AFTER
                )
                if document is None:
                    span.set_attribute("store.cas_result", "conflict")
                    raise self._missing_or_conflict(object_id, "Case already assigned")
            except PyMongoError as e:
                logger.error(f"Failed to assign case {case_id}: {e}")
                raise StorageError("Failed to assign case") from e
            span.set_attribute("store.cas_result", "applied")
            return case_from_document(document)

    # Users and NGO profiles

    def get_user_with_ngo_profile(self, user_id: str) -> Optional[UserContext]:
        object_id = self._object_id(user_id)
        if object_id is None:
            return None
        try:
            user = self.get_collection(USERS).find_one({"_id": object_id})
            if user is None:
                return None
            profile = self.get_collection(NGO_PROFILES).find_one({"userId": user_id})
        except PyMongoError as e:
            logger.error(f"Failed to load user {user_id}: {e}")
            raise StorageError("Failed to load user") from e

        try:
            role = UserRole(user.get("role", UserRole.CITIZEN.value))
        except ValueError as e:
            logger.error(f"User {user_id} has an unknown role: {user.get('role')!r}")
            raise StorageError("Stored user has an unknown role") from e

        return UserContext(
            user_id=str(user["_id"]),
            role=role,
            email=user.get("email"),
            name=user.get("name"),
            ngo_profile=self._profile_from_document(profile) if profile else None
        )

    def get_ngo_contact(self, ngo_profile_id: str) -> Optional[NgoContact]:
        object_id = self._object_id(ngo_profile_id)
        if object_id is None:
            return None
        try:
            profile = self.get_collection(NGO_PROFILES).find_one({"_id": object_id})
            if profile is None:
                return None
            user_object_id = self._object_id(profile.get("userId"))
            user = self.get_collection(USERS).find_one({"_id": user_object_id}) if user_object_id else None
        except PyMongoError as e:
            logger.error(f"Failed to load NGO profile {ngo_profile_id}: {e}")
            raise StorageError("Failed to load NGO profile") from e
        if user is None:
            return None
        return NgoContact(
            ngo_profile_id=ngo_profile_id,
            user_id=str(user["_id"]),
            name=user.get("name", ""),
            email=user.get("email", "")
        )

    @staticmethod
    def _profile_from_document(document: Dict[str, Any]) -> NgoProfile:
        return NgoProfile(
            id=str(document["_id"]),
            user_id=document["userId"],
            organization_name=document.get("organizationName"),
            verified=bool(document.get("verified", False))
        )

    # Index Management

    def create_indexes(self) -> None:
        """Create indexes backing listing, matching and claim lookups."""
        try:
            logger.info("Creating MongoDB indexes...")

            cases = self.get_collection(CASES)
            cases.create_index([("type", ASCENDING), ("createdAt", DESCENDING)])
            cases.create_index("assignedNgoId")
            cases.create_index("reportedById")

            users = self.get_collection(USERS)
            users.create_index("email", unique=True)

            profiles = self.get_collection(NGO_PROFILES)
            profiles.create_index("userId", unique=True)

            logger.info("MongoDB indexes created successfully")

        except PyMongoError as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise StorageError("Failed to create indexes") from e
