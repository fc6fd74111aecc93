"""Dialect constants and reserved descriptor keys."""

# Native row-reference column per dialect (the identity field maps here)
row_ref_columns = {
    'orientdb': '@rid',
    'default': 'id',
}

# (case-sensitive, case-insensitive) pattern-match operators
pattern_operators = {
    'orientdb': ('~', '~*'),
    'postgresql': ('~', '~*'),
    'mysql': ('REGEXP BINARY', 'REGEXP'),
    'sqlite': ('REGEXP', 'REGEXP'),
    'default': ('~', '~*'),
}

# Dialects with one regex operator take case-insensitivity as an inline pattern flag
inline_ignore_case = {
    'sqlite': '(?i)',
}

control_keys = ('sort$', 'limit$', 'skip$', 'distinct$', 'ids', 'all$')

identity_field = 'id'

default_limit = 20

# Bound parameter name for row-reference predicates; columns may not start with '_'
rid_param = '_rid'
