"""
Photoshop Linux - install, launch and remove Adobe Photoshop CC through Wine.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

__version__ = "3.0.0"
