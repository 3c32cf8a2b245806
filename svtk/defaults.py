# svtk/defaults.py
"""Default settings - no imports to avoid circular dependencies."""

settings = {
    'buffer_block_size': 1024,        # characters pulled from the source per read
    'separator_candidates': ',\t',    # tried in order of appearance when no separator is given
    'separator_sniff_size': 64 * 1024,
    'source_preview_length': 20,      # length of the name given to in-memory sources
    'encoding': 'utf-8-sig',
    'compressed_file_buffer_size': 1024 * 1024,  # 1MB buffer for .gz/.bz2/.xz files
    'logging': {
        'directory': './logs',
        'level': 'INFO',
        'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        'timestamp_format': '%Y-%m-%d %H:%M:%S',
        'filename_format': '%Y%m%d_%H%M%S',  # Set to '' for single log file (no timestamp)
        'split_errors': True,
        'console': True,
    }
}
