# quadgrid/config/defaults.py
"""Default configuration values"""

from pathlib import Path

# Project path
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / 'logs'

PATHS = {
    'logs_dir': str(LOGS_DIR),
}

# Initial uniform grid
GRIDS = {
    'default_cell_size': 1.0,
    'default_buffer': 1,  # extra rows/columns on every side
}

REFINEMENT = {
    'default_policy': 'neighborhood_box',
    'default_iterations': 1,
    'max_cells_warning': 1_000_000,  # log a warning past this many cells
    'retain_history': False,
}

EXPORT = {
    'chunk_size': 10000,
    'include_metadata': True,
    'compression': None,  # None or 'gzip'
    'float_format': None,  # e.g. '%.6f'; None keeps full precision
}

LOGGING = {
    'level': 'INFO',
    'max_file_size': 10 * 1024 * 1024,
    'backup_count': 3,
}
