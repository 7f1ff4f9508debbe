"""Bounds-checked decoding of fixed-layout binary structures."""

from __future__ import annotations

import struct
from dataclasses import InitVar
from typing import TYPE_CHECKING, Any, ClassVar, Literal, NamedTuple, TypeVar

from typing_extensions import Annotated, get_args, get_origin, get_type_hints

from .typing import NoneType

if TYPE_CHECKING:
    from .typing import ReadableBuffer

__all__ = ["ByteStruct"]


INT_CONVERSION = {1: "B", 2: "H", 4: "I", 8: "Q"}
SIGNED_SPECIFIERS = ("signed", "unsigned")
INTERNAL_NAMES = (
    "__bytestruct_fields__",
    "__bytestruct_format__",
    "__bytestruct_size__",
)

_Bs = TypeVar("_Bs", bound="ByteStruct")


class _FieldDescriptor(NamedTuple):
    """Metadata about a field of a `ByteStruct`.

    - `type_origin`: Origin of an `Annotated` type (e.g. `bytes` for
        `Annotated[bytes, 4]`) or the according `ByteStruct` subclass if the
        field represents an embedded `ByteStruct`.
    - `offset`: Position of the field in bytes, relative to the start of the
        structure.
    - `size`: Size of the field in bytes.
    - `is_bytestruct`: True if the field represents an embedded `ByteStruct`.
    """

    type_origin: Any
    offset: int
    size: int
    is_bytestruct: bool = False


class _ByteStructMeta(type):
    """Metaclass of `ByteStruct`.

    Analyzes the type annotations found in a `ByteStruct` subclass and sets
    `__bytestruct_fields__`, `__bytestruct_format__` and `__bytestruct_size__`
    accordingly.

    - `__bytestruct_fields__` is a mapping of field names (`str`) to field
        descriptors (`_FieldDescriptor`).
    - `__bytestruct_format__` is the format string which is passed to
        `struct.unpack_from()` to decode the structure.
    - `__bytestruct_size__` is the size of the structure in bytes.
    """

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ) -> _ByteStructMeta:
        """Provide a signature of `__new__()` which allows specifying `kwargs`
        like `byteorder` when subclassing `ByteStruct`.
        """
        return super().__new__(mcs, name, bases, namespace)

    def __init__(
        cls,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        byteorder: Literal["<", ">"] = "<",
    ):
        super().__init__(name, bases, namespace)
        if not bases:
            return  # cls is ByteStruct

        type_hints = get_type_hints(cls, include_extras=True)
        format_ = f"{byteorder}"
        fields = {}
        offset = 0

        for name, type_ in type_hints.items():
            if name in INTERNAL_NAMES or type(type_) is InitVar:
                continue

            origin = get_origin(type_)
            if origin is ClassVar:
                continue

            # Embedded ByteStruct, decoded from its own slice
            if isinstance(type_, cls.__class__) and type_ is not ByteStruct:
                size = len(type_)
                format_ += f"{size}s"
                fields[name] = _FieldDescriptor(type_, offset, size, True)
                offset += size
                continue

            if origin is not Annotated:
                raise TypeError(
                    f"Unannotated type {type_} of field {name!r} is not allowed for "
                    f"ByteStruct"
                )

            args = get_args(type_)
            annotated_type = args[0]
            size = args[1]
            if not isinstance(size, int):
                raise TypeError("Field size must be specified as int")
            if size < 1:
                raise ValueError("Field size must be greater than or equal to 1")

            if annotated_type is int:
                signed = False
                if len(args) > 2:
                    if args[2] not in SIGNED_SPECIFIERS:
                        raise ValueError(
                            f"Invalid specifier {args[2]} on field {name!r}, must be "
                            f"one of {SIGNED_SPECIFIERS}"
                        )
                    signed = args[2] == "signed"
                if size not in INT_CONVERSION.keys():
                    raise ValueError(
                        f"Invalid int field size {size}, must be one of "
                        f"{tuple(INT_CONVERSION.keys())}"
                    )
                format_specifier = INT_CONVERSION[size]
                if signed:
                    format_specifier = format_specifier.lower()
                format_ += format_specifier

            elif annotated_type is bytes:
                format_ += f"{size}s"
            elif annotated_type is NoneType:
                format_ += f"{size}x"  # pad bytes
            else:
                raise TypeError(
                    f"Annotated type {args[0]} of field {name!r} is not allowed for "
                    f"ByteStruct"
                )

            fields[name] = _FieldDescriptor(annotated_type, offset, size)
            offset += size

        cls.__bytestruct_fields__ = fields
        cls.__bytestruct_format__ = format_
        cls.__bytestruct_size__ = struct.calcsize(format_)

    def __len__(cls) -> int:
        """Size of the structure in bytes."""
        return cls.__bytestruct_size__


class ByteStruct(metaclass=_ByteStructMeta):
    """Read-only view of packed binary data.

    A thin declarative layer on top of the `struct` module. Every field is
    described by name, type and size, so that a structure can be decoded from an
    arbitrary position of a buffer after checking that the buffer is large enough
    to hold it.

    Note that every `ByteStruct` subclass must be a frozen `dataclass`.

    Example::

        @dataclasses.dataclass(frozen=True)
        class MyStruct(ByteStruct, byteorder='<'):

            field_1: Annotated[int, 2]            # unsigned int of size 2 bytes
            field_2: Annotated[int, 4, 'signed']  # signed int of size 4 bytes
            field_3: Annotated[bytes, 4]          # bytes of size 4
            field_4: Annotated[None, 8]           # 8 pad bytes
            field_5: MySecondStruct               # embedded ByteStruct

    The `byteorder` argument can be one of `('<', '>')`.
    """

    # Populated per class
    __bytestruct_fields__: "dict[str, _FieldDescriptor]"
    __bytestruct_format__: str
    __bytestruct_size__: int

    @classmethod
    def _check_direct_instantiation(cls) -> None:
        """Raise `TypeError` if it is tried to directly instantiate `ByteStruct`
        and not a subclass of `ByteStruct`.
        """
        if cls.__bases__ == (object,):
            raise TypeError(f"Cannot directly instantiate {cls.__name__}")

    @classmethod
    def _check_frozen_dataclass(cls) -> None:
        """Raise `TypeError` if it is tried to instantiate a subclass of
        `ByteStruct` which is not a frozen `dataclass`.
        """
        params: Any = getattr(cls, "__dataclass_params__", None)
        if params is None or not params.frozen:
            raise TypeError("ByteStruct subclass must be a frozen dataclass")

    # noinspection PyUnusedLocal
    def __init__(self, *args: Any, **kwargs: Any):
        self._check_direct_instantiation()
        self._check_frozen_dataclass()

    def __post_init__(self) -> None:
        self._check_frozen_dataclass()

    @classmethod
    def offset_of(cls, name: str) -> int:
        """Position of field `name` in bytes, relative to the start of the
        structure.
        """
        cls._check_direct_instantiation()
        try:
            return cls.__bytestruct_fields__[name].offset
        except KeyError:
            raise KeyError(f"{cls.__name__} has no field {name!r}") from None

    @classmethod
    def fits(cls, buffer: ReadableBuffer, offset: int = 0) -> bool:
        """Whether `buffer` holds enough bytes to decode the structure at
        `offset`.
        """
        with memoryview(buffer) as view:
            available = view.nbytes
        return 0 <= offset and offset + cls.__bytestruct_size__ <= available

    @classmethod
    def from_buffer(cls: type[_Bs], buffer: ReadableBuffer, offset: int = 0) -> _Bs:
        """Decode the structure from `buffer`, starting at byte `offset`.

        `ValueError` is raised if the structure would extend past the end of
        `buffer`. Bytes following the structure are ignored.
        """
        cls._check_direct_instantiation()
        size = cls.__bytestruct_size__

        if not cls.fits(buffer, offset):
            raise ValueError(
                f"{cls.__name__} of {size} bytes at offset {offset} exceeds buffer "
                f"bounds"
            )

        unpacked_values = struct.unpack_from(cls.__bytestruct_format__, buffer, offset)
        values: list[Any] = []
        padding_count = 0

        # Create list of values for dataclass
        # This includes embedded ByteStructs and None values for padding.
        for index, descriptor in enumerate(cls.__bytestruct_fields__.values()):
            type_ = descriptor.type_origin
            if type_ is NoneType:
                values.append(None)
                padding_count += 1
                continue

            value = unpacked_values[index - padding_count]
            if descriptor.is_bytestruct:
                value = type_.from_bytes(value)
            values.append(value)

        return cls(*values)

    @classmethod
    def from_bytes(cls: type[_Bs], b: bytes) -> _Bs:
        """Decode the structure from `bytes` of exactly the structure's size."""
        cls._check_direct_instantiation()
        size = cls.__bytestruct_size__

        if len(b) != size:
            raise ValueError(f"Structure is {size} bytes long, got {len(b)} bytes")
        return cls.from_buffer(b)

    def __len__(self) -> int:
        """Size of the structure in bytes."""
        return self.__bytestruct_size__
