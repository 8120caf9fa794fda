"""Message catalog for client-facing error text.

Every error the service returns carries a stable code. The text for a code
lives here, can be overridden from a JSON file, and is formatted with named
parameters (``{object_id}``, ``{user}`` ...).
"""

import logging
from typing import Any
from typing import Mapping
from typing import Optional

from boss.utils import load_json_file


logger = logging.getLogger(__name__)

MISSING_MESSAGE_PREFIX = "CODE ERROR: message text for key not found: "

DEFAULT_MESSAGES: dict[str, str] = {
    # identity and permissions
    "missingUser": "No REMOTE_USER header found in the request.",
    "noReadPermission": "No read permission for {object_id} by {user}.",
    "noWritePermission": "No write permission for {object_id} by {user}.",
    "readOnlyStore": "Object {object_id} is stored on read-only platform {platform}.",
    # lookup
    "objectNotFound": "Object {object_id} not found.",
    "objectDeleted": "Object {object_id} was deleted.",
    "noObjectsByName": "There are no objects by the name: {name}.",
    "groupNotFound": "Group {group_id} not found.",
    "groupDeleted": "Group {group_id} was deleted.",
    # create validation
    "objectNameMissing": "ObjectName cannot be null.",
    "ownerMissing": "OwnerId cannot be null.",
    "storagePlatformMissing": "StoragePlatform cannot be null.",
    "storagePlatformUnknown": "StoragePlatform must be one of {platforms}.",
    "opaqueNeedsDirectoryPath": "DirectoryPath must be supplied for opaqueURI objects.",
    "opaqueForceLocation": "ForceLocation cannot be used with opaqueURI objects.",
    "directoryPathNotAllowed": "DirectoryPath may only be supplied for opaqueURI objects or with forceLocation.",
    "forceLocationNeedsDirectoryPath": "DirectoryPath must be supplied when forceLocation is set.",
    "locationNotFound": "Location {location} does not exist in {platform}.",
    # update validation
    "objectIdImmutable": "ObjectId cannot be modified.",
    "objectNameImmutable": "ObjectName cannot be modified.",
    "storagePlatformImmutable": "StoragePlatform cannot be modified.",
    "directoryPathImmutable": "DirectoryPath cannot be modified.",
    "sizeEstimateImmutable": "SizeEstimateBytes cannot be modified.",
    "groupIdImmutable": "GroupId cannot be modified.",
    "typeHintImmutable": "TypeHint cannot be modified.",
    "directoryImmutable": "Directory cannot be modified.",
    # resolve
    "invalidHttpMethod": "HttpMethod must be one of {methods}.",
    "invalidValidityPeriod": "ValidityPeriodSeconds must be a positive integer.",
    "invalidContentMD5": "ContentMD5Hex must be a 32 character hexadecimal string.",
    "copySourceMissing": "LocationToCopy must be supplied.",
    "copyOpaque": "Objects on the opaqueURI platform cannot be copied into.",
    "copyNotSupported": "Copying objects is not supported on platform {platform}.",
    "resumableOpaque": "Resumable uploads are not available for opaqueURI objects.",
    "resumableNotSupported": "Resumable uploads are not supported on platform {platform}.",
    # backend failures
    "storeFailure": "Object store {platform} failed for object {object_id}.",
    "deleteFailure": "Unable to delete object {object_id} from object store {platform}.",
}


class MessageCatalog:
    """Lookup table from error code to message template."""

    def __init__(self, overrides: Optional[Mapping[str, str]] = None) -> None:
        self._messages = dict(DEFAULT_MESSAGES)
        if overrides:
            self._messages.update(overrides)

    @classmethod
    def from_file(cls, path: str) -> "MessageCatalog":
        data = load_json_file(path)
        if not isinstance(data, dict):
            raise ValueError(f"Message catalog {path} must contain a JSON object")
        return cls({str(k): str(v) for k, v in data.items()})

    def __contains__(self, code: str) -> bool:
        return code in self._messages

    def get(self, code: str, **params: Any) -> str:
        template = self._messages.get(code)
        if template is None:
            logger.warning(f"No message text configured for code {code}")
            return MISSING_MESSAGE_PREFIX + code
        try:
            return template.format(**params)
        except (KeyError, IndexError):
            logger.warning(f"Message template for {code} could not be formatted with {sorted(params)}")
            return template
