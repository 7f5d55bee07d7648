#!/usr/bin/env python3

"""Default thresholds for the globals report."""

# How many bytes must be wasted on repeats before a duplicate group is listed.
# The comparison is strict: a group wasting exactly this much is not listed.
WASTAGE_THRESHOLD = 100

# How big an individual symbol must be before it is listed as large (inclusive).
BIG_SIZE_THRESHOLD = 500
