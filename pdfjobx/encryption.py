"""Encryption policy: passwords plus exactly one key-length tier.

The three tiers are sibling value types sharing a :class:`Capabilities`
value. Capability booleans are turned into the ``"y"``/``"n"`` wire tokens
when a tier is constructed, so tier-specific rules are enforced here and the
encoder only copies tokens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Union

from .enums import EncryptionTier, Modify, Print
from .exceptions import ValidationError

_LOGGER = logging.getLogger("pdfjobx.encryption")

YES = "y"
NO = "n"
SWITCH = ""

_OPTION = "encrypt"

# (attribute, wire key)
_CAPABILITY_KEYS = (
    ("accessibility", "accessibility"),
    ("annotate", "annotate"),
    ("assemble", "assemble"),
    ("extract", "extract"),
    ("form", "form"),
    ("modify_other", "modifyOther"),
)


def _token(name: str, flag: Any) -> str:
    if not isinstance(flag, bool):
        raise ValidationError(_OPTION, f"'{name}' must be a boolean")
    return YES if flag else NO


def _level(enum_cls: type[Modify] | type[Print], name: str, value: Any):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(_OPTION, f"'{name}' must be one of: {allowed}") from None


@dataclass(frozen=True, slots=True)
class Capabilities:
    """Tri-state permission tokens: ``"y"``, ``"n"`` or ``None`` (not applicable)."""

    accessibility: str | None = None
    annotate: str | None = None
    assemble: str | None = None
    extract: str | None = None
    form: str | None = None
    modify_other: str | None = None

    def __post_init__(self) -> None:
        for item in fields(self):
            token = getattr(self, item.name)
            if token not in (YES, NO, None):
                raise ValidationError(_OPTION, f"'{item.name}' must be 'y', 'n' or None")

    @classmethod
    def of(cls, **flags: bool | None) -> "Capabilities":
        """Build capabilities from booleans; ``None`` means not applicable."""

        known = {name for name, _ in _CAPABILITY_KEYS}
        tokens: dict[str, str] = {}
        for name, flag in flags.items():
            if name not in known:
                raise ValidationError(_OPTION, f"unknown capability '{name}'")
            if flag is not None:
                tokens[name] = _token(name, flag)
        return cls(**tokens)

    def set_names(self) -> list[str]:
        return [name for name, _ in _CAPABILITY_KEYS if getattr(self, name) is not None]

    def to_wire(self) -> dict[str, Any]:
        document: dict[str, Any] = {}
        for name, wire_key in _CAPABILITY_KEYS:
            token = getattr(self, name)
            if token is not None:
                document[wire_key] = token
        return document


def _basic_capabilities() -> Capabilities:
    return Capabilities(annotate=YES, extract=YES)


def _full_capabilities() -> Capabilities:
    return Capabilities(
        accessibility=YES,
        annotate=YES,
        assemble=YES,
        extract=YES,
        form=YES,
        modify_other=YES,
    )


def _check_levels(tier: str, modify: Any, print_level: Any) -> None:
    if not isinstance(modify, Modify):
        raise ValidationError(_OPTION, f"{tier} 'modify' must be a Modify level")
    if not isinstance(print_level, Print):
        raise ValidationError(_OPTION, f"{tier} 'print' must be a Print level")


def _check_parameters(tier: str, given: dict[str, Any], accepted: frozenset[str]) -> None:
    unsupported = sorted(set(given) - accepted)
    if unsupported:
        raise ValidationError(
            _OPTION, f"{tier} encryption does not support: {', '.join(unsupported)}"
        )


@dataclass(frozen=True, slots=True)
class Tier40:
    """40-bit RC4 encryption; only annotate and extract restrictions apply."""

    capabilities: Capabilities = field(default_factory=_basic_capabilities)
    modify: Modify = Modify.ALL
    print: Print = Print.FULL

    wire_key: ClassVar[str] = EncryptionTier.BITS_40.value
    parameters: ClassVar[frozenset[str]] = frozenset({"annotate", "extract", "modify", "print"})

    def __post_init__(self) -> None:
        _check_levels(self.wire_key, self.modify, self.print)
        unsupported = [
            name for name in self.capabilities.set_names() if name not in ("annotate", "extract")
        ]
        if unsupported:
            raise ValidationError(
                _OPTION, f"40-bit encryption does not support: {', '.join(unsupported)}"
            )

    @classmethod
    def create(cls, **params: Any) -> "Tier40":
        _check_parameters("40-bit", params, cls.parameters)
        return cls(
            capabilities=Capabilities.of(
                annotate=params.get("annotate", True),
                extract=params.get("extract", True),
            ),
            modify=_level(Modify, "modify", params.get("modify", Modify.ALL)),
            print=_level(Print, "print", params.get("print", Print.FULL)),
        )

    def to_wire(self) -> dict[str, Any]:
        document = self.capabilities.to_wire()
        document["modify"] = self.modify.value
        document["print"] = self.print.value
        return document


@dataclass(frozen=True, slots=True)
class Tier128:
    """128-bit encryption, RC4 unless ``use_aes`` is set."""

    capabilities: Capabilities = field(default_factory=_full_capabilities)
    modify: Modify = Modify.ALL
    print: Print = Print.FULL
    use_aes: str = NO
    force_v4: bool = False

    wire_key: ClassVar[str] = EncryptionTier.BITS_128.value
    parameters: ClassVar[frozenset[str]] = frozenset(
        {name for name, _ in _CAPABILITY_KEYS} | {"modify", "print", "use_aes", "force_v4"}
    )

    def __post_init__(self) -> None:
        _check_levels(self.wire_key, self.modify, self.print)
        if self.use_aes not in (YES, NO):
            raise ValidationError(_OPTION, "'use_aes' must be 'y' or 'n'")
        if not isinstance(self.force_v4, bool):
            raise ValidationError(_OPTION, "'force_v4' must be a boolean")

    @classmethod
    def create(cls, **params: Any) -> "Tier128":
        _check_parameters("128-bit", params, cls.parameters)
        use_aes = _token("use_aes", params.get("use_aes", False))
        _LOGGER.debug("128-bit encryption is using %s", "AES" if use_aes == YES else "RC4")
        return cls(
            capabilities=_capabilities_from(params),
            modify=_level(Modify, "modify", params.get("modify", Modify.ALL)),
            print=_level(Print, "print", params.get("print", Print.FULL)),
            use_aes=use_aes,
            force_v4=params.get("force_v4", False),
        )

    def to_wire(self) -> dict[str, Any]:
        document = self.capabilities.to_wire()
        document["modify"] = self.modify.value
        document["print"] = self.print.value
        document["useAes"] = self.use_aes
        if self.force_v4:
            document["forceV4"] = SWITCH
        return document


@dataclass(frozen=True, slots=True)
class Tier256:
    """256-bit AES encryption."""

    capabilities: Capabilities = field(default_factory=_full_capabilities)
    modify: Modify = Modify.ALL
    print: Print = Print.FULL
    cleartext_metadata: bool = False
    allow_insecure: bool = False
    force_r5: bool = False

    wire_key: ClassVar[str] = EncryptionTier.BITS_256.value
    parameters: ClassVar[frozenset[str]] = frozenset(
        {name for name, _ in _CAPABILITY_KEYS}
        | {"modify", "print", "cleartext_metadata", "allow_insecure", "force_r5"}
    )

    def __post_init__(self) -> None:
        _check_levels(self.wire_key, self.modify, self.print)
        for name in ("cleartext_metadata", "allow_insecure", "force_r5"):
            if not isinstance(getattr(self, name), bool):
                raise ValidationError(_OPTION, f"'{name}' must be a boolean")

    @classmethod
    def create(cls, **params: Any) -> "Tier256":
        _check_parameters("256-bit", params, cls.parameters)
        return cls(
            capabilities=_capabilities_from(params),
            modify=_level(Modify, "modify", params.get("modify", Modify.ALL)),
            print=_level(Print, "print", params.get("print", Print.FULL)),
            cleartext_metadata=params.get("cleartext_metadata", False),
            allow_insecure=params.get("allow_insecure", False),
            force_r5=params.get("force_r5", False),
        )

    def to_wire(self) -> dict[str, Any]:
        document = self.capabilities.to_wire()
        document["modify"] = self.modify.value
        document["print"] = self.print.value
        if self.cleartext_metadata:
            document["cleartextMetadata"] = SWITCH
        if self.allow_insecure:
            document["allowInsecure"] = SWITCH
        if self.force_r5:
            document["forceR5"] = SWITCH
        return document


Tier = Union[Tier40, Tier128, Tier256]

_TIERS: dict[EncryptionTier, type[Tier40] | type[Tier128] | type[Tier256]] = {
    EncryptionTier.BITS_40: Tier40,
    EncryptionTier.BITS_128: Tier128,
    EncryptionTier.BITS_256: Tier256,
}


def _capabilities_from(params: dict[str, Any]) -> Capabilities:
    return Capabilities.of(**{name: params.get(name, True) for name, _ in _CAPABILITY_KEYS})


def build_tier(tier: EncryptionTier | str, **params: Any) -> Tier:
    """Construct the tier selected by *tier* from its permission parameters."""

    try:
        selector = EncryptionTier(tier)
    except ValueError:
        allowed = ", ".join(member.value for member in EncryptionTier)
        raise ValidationError(_OPTION, f"tier must be one of: {allowed}") from None
    return _TIERS[selector].create(**params)


@dataclass(frozen=True, slots=True)
class EncryptionPolicy:
    """User and owner passwords plus the active tier."""

    user_password: str = field(repr=False)
    owner_password: str = field(repr=False)
    tier: Tier = field(default_factory=Tier256)

    def __post_init__(self) -> None:
        for name in ("user_password", "owner_password"):
            if not isinstance(getattr(self, name), str):
                raise ValidationError(_OPTION, f"'{name}' must be a string")
        if not isinstance(self.tier, (Tier40, Tier128, Tier256)):
            raise ValidationError(_OPTION, "tier must be Tier40, Tier128 or Tier256")

    @property
    def bits(self) -> EncryptionTier:
        return EncryptionTier(self.tier.wire_key)

    def to_wire(self) -> dict[str, Any]:
        return {
            "userPassword": self.user_password,
            "ownerPassword": self.owner_password,
            self.tier.wire_key: self.tier.to_wire(),
        }


__all__ = [
    "YES",
    "NO",
    "SWITCH",
    "Capabilities",
    "Tier40",
    "Tier128",
    "Tier256",
    "Tier",
    "EncryptionPolicy",
    "build_tier",
]
