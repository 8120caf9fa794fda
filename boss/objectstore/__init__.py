from boss.objectstore.base import ObjectStore
from boss.objectstore.base import ObjectStoreError
from boss.objectstore.base import UnsupportedOperationError
from boss.objectstore.fcs import FCSObjectStore
from boss.objectstore.gcs import GCSObjectStore
from boss.objectstore.registry import ObjectStoreRegistry
from boss.objectstore.registry import build_object_store
from boss.objectstore.s3 import S3ObjectStore


__all__ = [
    "FCSObjectStore",
    "GCSObjectStore",
    "ObjectStore",
    "ObjectStoreError",
    "ObjectStoreRegistry",
    "S3ObjectStore",
    "UnsupportedOperationError",
    "build_object_store",
]
