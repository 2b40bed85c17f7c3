# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.


# Store the version here so:
# 1) we don't load dependencies by storing it in __init__.py
# 2) we can import it in setup.py for the same reason
# 3) we can import it into the module module
__version__ = "1.0"
