# conditions/remote.py
from __future__ import annotations

import json
from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, List, Mapping, Optional, Tuple, Type, Union
from urllib.parse import urlparse

from pydantic import field_validator

from ..errors import ConfigurationError
from .base import PredicateParams, Probe, Target, TargetCondition, non_empty_target, parse_params

GCS_READ_ONLY_SCOPE = "https://www.googleapis.com/auth/devstorage.read_only"


@dataclass(frozen=True)
class ObjectURL:
    """A parsed `scheme://bucket/key` object location."""
    scheme: str
    bucket: str
    key: str

    @classmethod
    def parse(cls, url: str) -> ObjectURL:
        parsed = urlparse(url)
        bucket = parsed.netloc
        key = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
        if not parsed.scheme or not bucket or not key:
            raise ConfigurationError(f"object URL must look like scheme://bucket/key, got {url!r}")
        return cls(scheme=parsed.scheme.lower(), bucket=bucket, key=key)

    def __str__(self) -> str:
        return f"{self.scheme}://{self.bucket}/{self.key}"


class RemoteObjectParams(PredicateParams):
    url: Union[str, List[str]]

    url_not_empty = field_validator("url")(non_empty_target)


class S3Params(RemoteObjectParams):
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    region: Optional[str] = None


class GCSParams(RemoteObjectParams):
    json_key: Optional[str] = None


class RemoteObjectCondition(TargetCondition):
    """
    Base for object-store conditions.

    Each target gets one metadata-only request per check. The client is built
    on first use and reused for the lifetime of the condition. Any error in the
    provider's exception families counts as "not yet".
    """

    schemes: ClassVar[Tuple[str, ...]] = ()
    transient_errors: ClassVar[Tuple[Type[BaseException], ...]] = ()

    def __init__(self, targets: Target[str], predicate=None):
        super().__init__(targets, predicate)
        self.urls = {}
        for t in targets:
            url = ObjectURL.parse(t)
            if url.scheme not in self.schemes:
                raise ConfigurationError(
                    f"{self.kind} condition does not support {url.scheme}:// URLs ({t})"
                )
            self.urls[t] = url
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = self._build_client()
        return self._client

    @abstractmethod
    def _build_client(self):
        raise NotImplementedError

    @abstractmethod
    def _last_modified(self, url: ObjectURL) -> Optional[datetime]:
        """
        Fetch object metadata. Returns the last-modified time, or None when the
        object does not exist.
        """
        raise NotImplementedError

    def probe(self, target: str) -> Probe:
        url = self.urls[target]
        try:
            last_modified = self._last_modified(url)
        except self.transient_errors as e:
            return Probe.miss(target, e)

        if last_modified is None:
            return Probe.miss(target)
        if self.predicate.matches(last_modified):
            return Probe.hit()
        return Probe.miss(target)


# ---------------------------------------------------------------------
# Amazon S3
# ---------------------------------------------------------------------

class S3ObjectCondition(RemoteObjectCondition):
    kind = "s3"
    schemes = ("s3",)

    def __init__(
        self,
        targets: Target[str],
        predicate=None,
        *,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        region: str | None = None,
    ):
        from botocore.exceptions import BotoCoreError, ClientError

        self.transient_errors = (ClientError, BotoCoreError)
        super().__init__(targets, predicate)
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.region = region

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> S3ObjectCondition:
        p = parse_params(S3Params, params, cls.kind)
        return cls(
            Target.of(p.url),
            p.predicate(),
            aws_access_key_id=p.aws_access_key_id,
            aws_secret_access_key=p.aws_secret_access_key,
            region=p.region,
        )

    def _build_client(self):
        import boto3

        options = {
            "aws_access_key_id": self.aws_access_key_id,
            "aws_secret_access_key": self.aws_secret_access_key,
            "region_name": self.region,
        }
        options = {k: v for k, v in options.items() if v is not None}
        # no explicit options -> boto3's default credential chain
        return boto3.client("s3", **options)

    def _last_modified(self, url: ObjectURL) -> Optional[datetime]:
        resp = self.client.head_object(Bucket=url.bucket, Key=url.key)
        return resp["LastModified"]


# ---------------------------------------------------------------------
# Google Cloud Storage
# ---------------------------------------------------------------------

class GCSObjectCondition(RemoteObjectCondition):
    kind = "gcs"
    schemes = ("gs", "gcs")

    def __init__(self, targets: Target[str], predicate=None, *, json_key: str | None = None):
        from google.api_core.exceptions import GoogleAPIError
        from google.auth.exceptions import GoogleAuthError

        # OSError covers transport failures and an unreadable key file
        self.transient_errors = (GoogleAPIError, GoogleAuthError, OSError)
        super().__init__(targets, predicate)
        self.json_key = json_key

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> GCSObjectCondition:
        p = parse_params(GCSParams, params, cls.kind)
        return cls(Target.of(p.url), p.predicate(), json_key=p.json_key)

    def _service_account_info(self) -> dict:
        try:
            return json.loads(self.json_key)
        except json.JSONDecodeError:
            # not inline JSON: treat it as a path to the key file
            with open(self.json_key, "r", encoding="utf-8") as f:
                return json.load(f)

    def _build_client(self):
        import google.auth
        from google.auth.exceptions import DefaultCredentialsError
        from google.cloud import storage
        from google.oauth2 import service_account

        if self.json_key:
            try:
                info = self._service_account_info()
                credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=[GCS_READ_ONLY_SCOPE]
                )
            except ValueError as e:
                raise DefaultCredentialsError(f"malformed service-account key: {e}") from e
            return storage.Client(project=info.get("project_id"), credentials=credentials)

        credentials, project = google.auth.default(scopes=[GCS_READ_ONLY_SCOPE])
        return storage.Client(project=project, credentials=credentials)

    def _last_modified(self, url: ObjectURL) -> Optional[datetime]:
        blob = self.client.bucket(url.bucket).get_blob(url.key)
        if blob is None:
            return None
        return blob.updated


# ---------------------------------------------------------------------
# Scheme dispatch
# ---------------------------------------------------------------------

REMOTE_PROVIDERS: dict[str, Type[RemoteObjectCondition]] = {
    "s3": S3ObjectCondition,
    "gs": GCSObjectCondition,
    "gcs": GCSObjectCondition,
}


def remote_object_condition(params: Mapping[str, Any]) -> RemoteObjectCondition:
    """Pick the provider from the URL scheme(s) and build its condition."""
    raw = params.get("url")
    if raw is None:
        raise ConfigurationError("invalid remote_object parameters: url: Field required")

    urls = raw if isinstance(raw, (list, tuple)) else [raw]
    if not urls:
        raise ConfigurationError("invalid remote_object parameters: url: must not be an empty list")
    schemes = {urlparse(str(u)).scheme.lower() for u in urls}
    if len(schemes) != 1:
        raise ConfigurationError(f"all remote_object URLs must share one scheme, got {sorted(schemes)}")

    scheme = schemes.pop()
    provider = REMOTE_PROVIDERS.get(scheme)
    if provider is None:
        raise ConfigurationError(
            f"unsupported object URL scheme {scheme!r}; expected one of {sorted(REMOTE_PROVIDERS)}"
        )
    return provider.from_params(params)
