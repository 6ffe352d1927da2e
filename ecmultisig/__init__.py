#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"__init__ module for the ecmultisig package."

name = "ecmultisig"
__version__ = "2026.10.1"
__author__ = "The ecmultisig developers"
__author_email__ = "devs@ecmultisig.org"
__copyright__ = "Copyright (C) 2026 The ecmultisig developers"
__license__ = "MIT License"
