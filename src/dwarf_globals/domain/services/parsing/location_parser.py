#!/usr/bin/env python3

"""DWARF location expression parser for static variable addresses.

A variable with static storage duration describes its location as a single
expression that pushes a constant address:

    DW_AT_location: [DW_OP_addr 0x601040]

DWARF 5 split-DWARF producers use an index into .debug_addr instead:

    DW_AT_location: [DW_OP_addrx 3]

Anything else is not a static variable for our purposes:
- Location lists (DW_FORM_sec_offset / DW_FORM_loclistx, or DW_FORM_data4/8
  before DWARF 4) describe locals whose storage moves.
- Register and frame-base expressions (DW_OP_reg*, DW_OP_fbreg) are locals.
- Thread-local variables end in DW_OP_form_tls_address / DW_OP_GNU_push_tls_address
  and only give a TLS block offset.
"""

from collections.abc import Callable
from typing import Any

from elftools.dwarf.dwarf_expr import DWARFExprParser

from ....infrastructure.logging import get_logger

logger = get_logger(__name__)

# Attribute forms that hold an inline expression (as opposed to a location list)
EXPRESSION_FORMS = frozenset(
    {
        "DW_FORM_exprloc",
        "DW_FORM_block",
        "DW_FORM_block1",
        "DW_FORM_block2",
        "DW_FORM_block4",
    }
)

ADDRESS_OPS = frozenset({"DW_OP_addr"})
ADDRESS_INDEX_OPS = frozenset({"DW_OP_addrx", "DW_OP_GNU_addr_index"})
TLS_OPS = frozenset({"DW_OP_form_tls_address", "DW_OP_GNU_push_tls_address"})


def parse_static_address(
    location_attr: Any,
    expr_parser: DWARFExprParser,
    resolve_index: Callable[[int], int] | None = None,
) -> int | None:
    """Extract the static address from a DW_AT_location attribute.

    Args:
        location_attr: pyelftools AttributeValue of DW_AT_location
        expr_parser: Expression parser built from the DWARF structs
        resolve_index: Maps a .debug_addr index to an address (DW_OP_addrx)

    Returns:
        Address of the variable, or None if it has no static storage

    Example:
        DW_FORM_exprloc [0x03, 0x40, 0x10, 0x60, 0x00, ...] -> 0x601040
    """
    if location_attr is None:
        return None

    if location_attr.form not in EXPRESSION_FORMS:
        logger.debug(f"Location in form {location_attr.form} is not a single expression")
        return None

    ops = expr_parser.parse_expr(location_attr.value)
    if not ops:
        logger.debug("Empty location expression (optimized out)")
        return None

    if any(op.op_name in TLS_OPS for op in ops):
        return None

    first = ops[0]
    if first.op_name in ADDRESS_OPS:
        return int(first.args[0])

    if first.op_name in ADDRESS_INDEX_OPS:
        if resolve_index is None:
            logger.warning(f"{first.op_name} found but no .debug_addr resolver available")
            return None
        return int(resolve_index(first.args[0]))

    return None
