# pyright: standard

"""zfs-backup-ng: zfs_backup_ng/endpoint/__init__.py."""

import urllib.parse

from ..__logger__ import logger
from ..__util__ import EndpointSpecError

from .common import Endpoint
from .local import LocalEndpoint
from .ssh import SSHEndpoint

__all__ = ["Endpoint", "LocalEndpoint", "SSHEndpoint", "choose_endpoint"]


def choose_endpoint(spec, common_config=None, excluded_types=()):
    """
    Chooses a suitable endpoint based on the specification given.

    ``ssh://[user@]host[:port]/pool/fs`` and ``host:pool/fs`` address a
    dataset on another host, anything else names a local dataset.

    Args:
        spec (str): The endpoint specification.
        common_config (dict): Configuration settings shared by all endpoints.
        excluded_types (tuple): Endpoint classes to exclude from consideration.

    Returns:
        Endpoint: An instance of the appropriate `Endpoint` subclass.

    Raises:
        EndpointSpecError: If no suitable endpoint can be determined for the
            given specification.
    """
    try:
        endpoint = _build_endpoint(spec, dict(common_config or {}), excluded_types)
    except ValueError as e:
        raise EndpointSpecError(f"Invalid dataset {spec!r}: {e}") from e
    logger.debug("Endpoint created: %r (%s)", endpoint, type(endpoint).__name__)
    return endpoint


def _build_endpoint(spec, config, excluded_types):
    if SSHEndpoint not in excluded_types and spec.startswith("ssh://"):
        endpoint_class = SSHEndpoint
        parsed = urllib.parse.urlparse(spec)
        if not parsed.hostname:
            raise ValueError("No hostname for SSH specified.")
        config["hostname"] = parsed.hostname
        config["port"] = parsed.port
        config["username"] = parsed.username
        config["path"] = parsed.path.strip("/")
    elif SSHEndpoint not in excluded_types and ":" in spec:
        endpoint_class = SSHEndpoint
        host, _, path = spec.partition(":")
        user, _, hostname = host.rpartition("@")
        config["hostname"] = hostname
        config["username"] = user or None
        config["path"] = path
    elif LocalEndpoint not in excluded_types:
        endpoint_class = LocalEndpoint
        config["path"] = spec
    else:
        raise ValueError(
            f"No endpoint could be generated for this specification: {spec}"
        )

    return endpoint_class(config=config)
