"""Storage models, protocols and backends for fastapi-credential-auth."""

from fastapi_credential_auth.db.jsonfile.adapter import JSONOTPStore, JSONUserStore
from fastapi_credential_auth.db.models import OtpEntry, UserRecord
from fastapi_credential_auth.db.protocols import OTPStore, UserStore
from fastapi_credential_auth.db.sqlalchemy.adapter import (
    SQLAlchemyOTPStore,
    SQLAlchemyUserStore,
)
from fastapi_credential_auth.db.sqlalchemy.models import (
    BaseCredentialUserTable,
    BaseOTPEntryTable,
    UTCDateTime,
)

__all__ = [
    "BaseCredentialUserTable",
    "BaseOTPEntryTable",
    "JSONOTPStore",
    "JSONUserStore",
    "OTPStore",
    "OtpEntry",
    "SQLAlchemyOTPStore",
    "SQLAlchemyUserStore",
    "UTCDateTime",
    "UserRecord",
    "UserStore",
]
