from typing import Optional, List, Dict
from datetime import datetime, timezone
from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Host(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str  # Display name, casing from first creation
    name_key: str = Field(index=True, unique=True)  # Lowercased natural key
    comment: Optional[str] = Field(default=None)

    host_name: Optional[str] = Field(default=None)  # IP or FQDN
    user: Optional[str] = Field(default=None)
    port: Optional[int] = Field(default=None)
    identity_file: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    certificate_file: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    proxy_jump: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    bind_address: Optional[str] = Field(default=None)
    bind_interface: Optional[str] = Field(default=None)

    ciphers: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    mac: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    kex_algorithms: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    host_key_algorithms: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    ca_signature_algorithms: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    pubkey_accepted_algorithms: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))

    pubkey_authentication: Optional[bool] = Field(default=None)
    compression: Optional[bool] = Field(default=None)
    connection_attempts: Optional[int] = Field(default=None)
    connect_timeout: Optional[int] = Field(default=None)  # Seconds
    server_alive_interval: Optional[int] = Field(default=None)  # Seconds
    tcp_keep_alive: Optional[bool] = Field(default=None)
    remote_forward: Optional[str] = Field(default=None)
    ignore_unknown: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    use_keychain: Optional[bool] = Field(default=None)

    # Directive name -> raw values, kept so the block can be written back
    ignored_fields: Dict[str, List[str]] = Field(default_factory=dict, sa_column=Column(JSON))
    unsupported_fields: Dict[str, List[str]] = Field(default_factory=dict, sa_column=Column(JSON))

    updated_at: datetime = Field(default_factory=utc_now)
