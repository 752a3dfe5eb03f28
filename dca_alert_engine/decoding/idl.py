"""Anchor IDL parsing and Borsh argument decoding.

Both IDL layouts are understood: the legacy one (camelCase names, ``publicKey``,
``{"defined": "Name"}``) and the 0.30+ one (snake_case names, explicit
``discriminator`` arrays, ``pubkey``, ``{"defined": {"name": "Name"}}``).
Decoded field names are always snake_case.
"""

from __future__ import annotations

import hashlib
import json
import re
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import base58

from dca_alert_engine.exceptions import DecodeError, IdlError

_INT_FORMATS = {
    "u8": "<B",
    "i8": "<b",
    "u16": "<H",
    "i16": "<h",
    "u32": "<I",
    "i32": "<i",
    "u64": "<Q",
    "i64": "<q",
    "f32": "<f",
    "f64": "<d",
}
_WIDE_INTS = {"u128": (16, False), "i128": (16, True), "u256": (32, False), "i256": (32, True)}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def sighash(name: str, namespace: str = "global") -> bytes:
    return hashlib.sha256(f"{namespace}:{snake_case(name)}".encode()).digest()[:8]


@dataclass
class IdlInstruction:
    name: str
    discriminator: bytes
    args: list[dict[str, Any]]


@dataclass
class Idl:
    name: str
    instructions: list[IdlInstruction]
    types: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Idl:
        if not isinstance(data, dict) or not isinstance(data.get("instructions"), list):
            raise IdlError("IDL has no instructions section")
        name = data.get("name") or (data.get("metadata") or {}).get("name") or ""
        instructions: list[IdlInstruction] = []
        for ix in data["instructions"]:
            ix_name = ix.get("name")
            if not ix_name:
                raise IdlError("IDL instruction without a name")
            disc = ix.get("discriminator")
            instructions.append(
                IdlInstruction(
                    name=ix_name,
                    discriminator=bytes(disc) if disc else sighash(ix_name),
                    args=list(ix.get("args") or []),
                )
            )
        types = {t["name"]: t["type"] for t in data.get("types") or [] if "name" in t}
        return cls(name=name, instructions=instructions, types=types)

    def find(self, name: str) -> IdlInstruction | None:
        want = snake_case(name)
        for ix in self.instructions:
            if snake_case(ix.name) == want:
                return ix
        return None

    def match(self, data: bytes) -> IdlInstruction | None:
        head = bytes(data[:8])
        for ix in self.instructions:
            if ix.discriminator == head:
                return ix
        return None

    def decode_args(self, ix: IdlInstruction, data: bytes) -> dict[str, Any]:
        reader = BorshReader(bytes(data), self.types)
        reader.offset = len(ix.discriminator)
        try:
            return {snake_case(a["name"]): reader.read(a["type"]) for a in ix.args}
        except (struct.error, IndexError, KeyError, UnicodeDecodeError) as e:
            raise DecodeError(f"{ix.name}: {e}") from e


class BorshReader:
    def __init__(self, data: bytes, types: dict[str, dict[str, Any]] | None = None):
        self.data = data
        self.types = types or {}
        self.offset = 0

    def _take(self, n: int) -> bytes:
        end = self.offset + n
        if end > len(self.data):
            raise DecodeError(f"need {n} bytes at offset {self.offset}, have {len(self.data)}")
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def read(self, ty: Any) -> Any:
        if isinstance(ty, str):
            return self._read_primitive(ty)
        if "option" in ty:
            flag = self._take(1)[0]
            return self.read(ty["option"]) if flag else None
        if "coption" in ty:
            flag = struct.unpack("<I", self._take(4))[0]
            return self.read(ty["coption"]) if flag else None
        if "vec" in ty:
            n = struct.unpack("<I", self._take(4))[0]
            return [self.read(ty["vec"]) for _ in range(n)]
        if "array" in ty:
            inner, n = ty["array"]
            return [self.read(inner) for _ in range(int(n))]
        if "defined" in ty:
            ref = ty["defined"]
            name = ref if isinstance(ref, str) else ref.get("name")
            if name not in self.types:
                raise DecodeError(f"unknown defined type {name!r}")
            return self._read_defined(self.types[name])
        raise DecodeError(f"unsupported IDL type {ty!r}")

    def _read_primitive(self, ty: str) -> Any:
        if ty == "bool":
            return self._take(1)[0] != 0
        if ty in _INT_FORMATS:
            fmt = _INT_FORMATS[ty]
            return struct.unpack(fmt, self._take(struct.calcsize(fmt)))[0]
        if ty in _WIDE_INTS:
            size, signed = _WIDE_INTS[ty]
            return int.from_bytes(self._take(size), "little", signed=signed)
        if ty in ("publicKey", "pubkey"):
            return base58.b58encode(self._take(32)).decode()
        if ty == "string":
            n = struct.unpack("<I", self._take(4))[0]
            return self._take(n).decode("utf-8")
        if ty == "bytes":
            n = struct.unpack("<I", self._take(4))[0]
            return self._take(n).hex()
        raise DecodeError(f"unsupported primitive {ty!r}")

    def _read_fields(self, fields: list[Any]) -> Any:
        # Named fields come as dicts, tuple fields as bare types
        if fields and all(isinstance(f, dict) and "name" in f for f in fields):
            return {snake_case(f["name"]): self.read(f["type"]) for f in fields}
        return [self.read(f) for f in fields]

    def _read_defined(self, spec: dict[str, Any]) -> Any:
        kind = spec.get("kind")
        if kind == "struct":
            return self._read_fields(spec.get("fields") or [])
        if kind == "enum":
            idx = self._take(1)[0]
            variants = spec.get("variants") or []
            if idx >= len(variants):
                raise DecodeError(f"enum variant {idx} out of range")
            variant = variants[idx]
            if not variant.get("fields"):
                return variant["name"]
            return {variant["name"]: self._read_fields(variant["fields"])}
        if kind == "type" and "alias" in spec:
            return self.read(spec["alias"])
        raise DecodeError(f"unsupported defined kind {kind!r}")


def stringify_numbers(obj: Any) -> Any:
    """Render every integer in a decoded value as a base-10 string."""
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, int):
        return str(obj)
    if isinstance(obj, list):
        return [stringify_numbers(x) for x in obj]
    if isinstance(obj, dict):
        return {k: stringify_numbers(v) for k, v in obj.items()}
    return obj


def load_idl(path: str | Path) -> Idl:
    p = Path(path)
    if not p.exists():
        raise IdlError(f"IDL file not found: {p}")
    try:
        data = json.loads(p.read_text())
    except json.JSONDecodeError as e:
        raise IdlError(f"IDL file {p} is not valid JSON: {e}") from e
    return Idl.from_json(data)
