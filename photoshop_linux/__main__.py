"""
Photoshop Linux - ``python -m photoshop_linux`` runs the setup menu.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from .cli import setup_main

if __name__ == "__main__":
    raise SystemExit(setup_main())
