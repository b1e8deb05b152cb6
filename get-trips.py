#!/usr/bin/env python3
import sys

from dublinbikes_trips.__main__ import main

sys.exit(main())
