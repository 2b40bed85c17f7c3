# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import sys

from .simulate import main

if __name__ == "__main__":
    sys.exit(main())
