"""
Assembly identity probe.

Reads the declared simple name of .NET assemblies straight from their
ECMA-335 metadata (Assembly table, Name column) without executing them.
Run as a module it is the isolated worker used by the load-based
deduplicator:

    python -m scriptlens.resolution.identity_probe < paths.json

stdin:  JSON list of file paths
stdout: JSON list of {"path": ..., "name": ... or null, "error": ... or null}
"""

import json
import struct
import sys
from typing import Dict, List, Optional

# Metadata table ids
ASSEMBLY_TABLE = 0x20
CLI_HEADER_DIRECTORY = 14

# Coded index kinds: (tag bits, referenced tables)
CODED_INDEXES = {
    "TypeDefOrRef": (2, (0x02, 0x01, 0x1B)),
    "HasConstant": (2, (0x04, 0x08, 0x17)),
    "HasCustomAttribute": (5, (0x06, 0x04, 0x01, 0x02, 0x08, 0x09, 0x0A, 0x00, 0x0E, 0x17,
                               0x14, 0x11, 0x1A, 0x1B, 0x20, 0x23, 0x26, 0x27, 0x28, 0x2A,
                               0x2C, 0x2B)),
    "HasFieldMarshal": (1, (0x04, 0x08)),
    "HasDeclSecurity": (2, (0x02, 0x06, 0x20)),
    "MemberRefParent": (3, (0x02, 0x01, 0x1A, 0x06, 0x1B)),
    "HasSemantics": (1, (0x14, 0x17)),
    "MethodDefOrRef": (1, (0x06, 0x0A)),
    "MemberForwarded": (1, (0x04, 0x06)),
    "CustomAttributeType": (3, (0x06, 0x0A)),
    "ResolutionScope": (2, (0x00, 0x1A, 0x23, 0x01)),
}

# Column layouts of the tables preceding Assembly. Ints are byte widths,
# "s"/"g"/"b" are string/guid/blob heap indexes, ("t", id) a simple table
# index and other strings coded indexes.
TABLE_SCHEMAS = {
    0x00: (2, "s", "g", "g", "g"),                                     # Module
    0x01: ("ResolutionScope", "s", "s"),                                # TypeRef
    0x02: (4, "s", "s", "TypeDefOrRef", ("t", 0x04), ("t", 0x06)),      # TypeDef
    0x03: (("t", 0x04),),                                              # FieldPtr
    0x04: (2, "s", "b"),                                               # Field
    0x05: (("t", 0x06),),                                              # MethodPtr
    0x06: (4, 2, 2, "s", "b", ("t", 0x08)),                            # MethodDef
    0x07: (("t", 0x08),),                                              # ParamPtr
    0x08: (2, 2, "s"),                                                 # Param
    0x09: (("t", 0x02), "TypeDefOrRef"),                               # InterfaceImpl
    0x0A: ("MemberRefParent", "s", "b"),                               # MemberRef
    0x0B: (2, "HasConstant", "b"),                                     # Constant
    0x0C: ("HasCustomAttribute", "CustomAttributeType", "b"),          # CustomAttribute
    0x0D: ("HasFieldMarshal", "b"),                                    # FieldMarshal
    0x0E: (2, "HasDeclSecurity", "b"),                                 # DeclSecurity
    0x0F: (2, 4, ("t", 0x02)),                                         # ClassLayout
    0x10: (4, ("t", 0x04)),                                            # FieldLayout
    0x11: ("b",),                                                      # StandAloneSig
    0x12: (("t", 0x02), ("t", 0x14)),                                  # EventMap
    0x13: (("t", 0x14),),                                              # EventPtr
    0x14: (2, "s", "TypeDefOrRef"),                                    # Event
    0x15: (("t", 0x02), ("t", 0x17)),                                  # PropertyMap
    0x16: (("t", 0x17),),                                              # PropertyPtr
    0x17: (2, "s", "b"),                                               # Property
    0x18: (2, ("t", 0x06), "HasSemantics"),                            # MethodSemantics
    0x19: (("t", 0x02), "MethodDefOrRef", "MethodDefOrRef"),           # MethodImpl
    0x1A: ("s",),                                                      # ModuleRef
    0x1B: ("b",),                                                      # TypeSpec
    0x1C: (2, "MemberForwarded", "s", ("t", 0x1A)),                    # ImplMap
    0x1D: (4, ("t", 0x04)),                                            # FieldRVA
    0x1E: (4, 4),                                                      # EncLog
    0x1F: (4,),                                                        # EncMap
}


class NotAnAssembly(ValueError):
    """The file is not a readable managed assembly."""


def _u16(data: bytes, offset: int) -> int:
    return struct.unpack_from("<H", data, offset)[0]


def _u32(data: bytes, offset: int) -> int:
    return struct.unpack_from("<I", data, offset)[0]


def _rva_to_offset(sections, rva: int) -> int:
    for vaddr, vsize, raw_ptr, raw_size in sections:
        if vaddr <= rva < vaddr + max(vsize, raw_size):
            return rva - vaddr + raw_ptr
    raise NotAnAssembly(f"RVA 0x{rva:x} outside all sections")


def _metadata_offset(data: bytes) -> int:
    """Locate the metadata root through the PE headers and CLI header."""
    if data[:2] != b"MZ":
        raise NotAnAssembly("missing MZ signature")
    pe = _u32(data, 0x3C)
    if data[pe:pe + 4] != b"PE\0\0":
        raise NotAnAssembly("missing PE signature")

    section_count = _u16(data, pe + 6)
    optional_size = _u16(data, pe + 20)
    optional = pe + 24
    magic = _u16(data, optional)
    if magic == 0x10B:
        directories = optional + 96
    elif magic == 0x20B:
        directories = optional + 112
    else:
        raise NotAnAssembly(f"unknown optional header magic 0x{magic:x}")

    cli_rva = _u32(data, directories + CLI_HEADER_DIRECTORY * 8)
    if cli_rva == 0:
        raise NotAnAssembly("no CLI header (native image)")

    sections = []
    table = optional + optional_size
    for i in range(section_count):
        entry = table + i * 40
        vsize, vaddr, raw_size, raw_ptr = struct.unpack_from("<IIII", data, entry + 8)
        sections.append((vaddr, vsize, raw_ptr, raw_size))

    cli = _rva_to_offset(sections, cli_rva)
    return _rva_to_offset(sections, _u32(data, cli + 8))


def _read_streams(data: bytes, root: int) -> Dict[str, tuple]:
    if _u32(data, root) != 0x424A5342:
        raise NotAnAssembly("bad metadata signature")
    version_length = _u32(data, root + 12)
    cursor = root + 16 + version_length + 2
    count = _u16(data, cursor)
    cursor += 2

    streams = {}
    for _ in range(count):
        offset, size = struct.unpack_from("<II", data, cursor)
        cursor += 8
        end = data.index(b"\0", cursor)
        name = data[cursor:end].decode("ascii")
        # names are null-terminated and padded to a 4-byte boundary
        cursor += (end - cursor + 4) & ~3
        streams[name] = (root + offset, size)
    return streams


def _read_string(data: bytes, heap: int, index: int) -> str:
    end = data.index(b"\0", heap + index)
    return data[heap + index:end].decode("utf-8")


def read_assembly_name(data: bytes) -> str:
    """
    Return the simple name declared in an assembly's metadata.

    Raises:
        NotAnAssembly: for native images, modules without an Assembly row
            and anything that is not a well-formed PE file.
    """
    try:
        streams = _read_streams(data, _metadata_offset(data))
        tables = streams.get("#~") or streams.get("#-")
        strings = streams.get("#Strings")
        if tables is None or strings is None:
            raise NotAnAssembly("missing metadata streams")

        start = tables[0]
        heap_sizes = data[start + 6]
        valid = struct.unpack_from("<Q", data, start + 8)[0]
        if not valid & (1 << ASSEMBLY_TABLE):
            raise NotAnAssembly("module has no Assembly table")

        rows = [0] * 64
        cursor = start + 24
        for table_id in range(64):
            if valid & (1 << table_id):
                rows[table_id] = _u32(data, cursor)
                cursor += 4
        if heap_sizes & 0x40:
            cursor += 4

        string_size = 4 if heap_sizes & 0x01 else 2
        guid_size = 4 if heap_sizes & 0x02 else 2
        blob_size = 4 if heap_sizes & 0x04 else 2

        def column_size(column) -> int:
            if isinstance(column, int):
                return column
            if column == "s":
                return string_size
            if column == "g":
                return guid_size
            if column == "b":
                return blob_size
            if isinstance(column, tuple):
                return 2 if rows[column[1]] < 0x10000 else 4
            bits, targets = CODED_INDEXES[column]
            return 2 if max(rows[t] for t in targets) < (1 << (16 - bits)) else 4

        for table_id in range(ASSEMBLY_TABLE):
            if rows[table_id]:
                cursor += rows[table_id] * sum(column_size(c) for c in TABLE_SCHEMAS[table_id])

        # Assembly: HashAlgId(4) Version(2*4) Flags(4) PublicKey(blob) Name(string) Culture(string)
        name_column = cursor + 4 + 8 + 4 + blob_size
        if string_size == 4:
            name_index = _u32(data, name_column)
        else:
            name_index = _u16(data, name_column)
        return _read_string(data, strings[0], name_index)
    except NotAnAssembly:
        raise
    except (struct.error, IndexError, ValueError) as e:
        raise NotAnAssembly(f"truncated or corrupt metadata: {e}") from e


def probe_file(path: str) -> Dict[str, Optional[str]]:
    """
    Probe one file, reporting failures instead of raising.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
        return {"path": path, "name": read_assembly_name(data), "error": None}
    except (OSError, NotAnAssembly) as e:
        return {"path": path, "name": None, "error": str(e)}


def main(argv: Optional[List[str]] = None) -> int:
    paths = json.load(sys.stdin)
    if not isinstance(paths, list):
        print("expected a JSON list of paths on stdin", file=sys.stderr)
        return 2
    json.dump([probe_file(str(p)) for p in paths], sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
