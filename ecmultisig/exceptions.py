#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Exception classes.

These are only meant to discriminate between Exceptions being raised
by ecmultisig from those raised by other codebase.

Users are usually better off just dealing with the regular
ValueError, TypeError, and RuntimeError
from which the ecmultisig versions are derived.
"""


class MultiSigValueError(ValueError):
    pass


class MultiSigTypeError(TypeError):
    pass


class MultiSigRuntimeError(RuntimeError):
    pass


class UninitializedError(MultiSigValueError):
    """A required commit, challenge, or response holds no value."""


class DecodeError(MultiSigValueError):
    """A byte buffer does not hold a valid scalar or point."""
