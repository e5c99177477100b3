from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class ParsedHost(BaseModel):
    """Connection settings of one ``Host`` section, as read from the file."""
    name: str
    host_name: Optional[str] = None
    user: Optional[str] = None
    port: Optional[int] = None
    identity_file: Optional[List[str]] = None
    certificate_file: Optional[List[str]] = None
    proxy_jump: Optional[List[str]] = None
    bind_address: Optional[str] = None
    bind_interface: Optional[str] = None
    ciphers: Optional[List[str]] = None
    mac: Optional[List[str]] = None
    kex_algorithms: Optional[List[str]] = None
    host_key_algorithms: Optional[List[str]] = None
    ca_signature_algorithms: Optional[List[str]] = None
    pubkey_accepted_algorithms: Optional[List[str]] = None
    pubkey_authentication: Optional[bool] = None
    compression: Optional[bool] = None
    connection_attempts: Optional[int] = None
    connect_timeout: Optional[int] = None
    server_alive_interval: Optional[int] = None
    tcp_keep_alive: Optional[bool] = None
    remote_forward: Optional[str] = None
    ignore_unknown: Optional[List[str]] = None
    use_keychain: Optional[bool] = None
    ignored_fields: Dict[str, List[str]] = {}
    unsupported_fields: Dict[str, List[str]] = {}
    comment: Optional[str] = None


class HostRead(ParsedHost):
    model_config = ConfigDict(from_attributes=True)

    id: int
    updated_at: Optional[datetime] = None


class NamedRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class HostDetail(HostRead):
    tags: List[str] = []
    groups: List[str] = []


class SearchResults(BaseModel):
    hosts: List[HostRead] = []
    tags: List[NamedRead] = []
    groups: List[NamedRead] = []
