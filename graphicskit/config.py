# config.py
"""
Library configuration constants for GraphicsKit
"""

# Codec defaults
DEFAULT_QUALITY = 1.0            # 1.0 requests lossless compression where available
TRANSFORMER_QUALITY = 0.9        # HEIC quality used by the value transformer
JPEG_MAX_QUALITY = 100
PNG_MAX_COMPRESS_LEVEL = 9
POINTS_PER_INCH = 72             # PDF pages are measured in points

# ICNS layout: (pixel width, scale) pairs written into an icon family.
# 64@1x and 128@2x are left out, matching the platform icon writer.
ICNS_REPRESENTATIONS = [
    (16, 1),
    (32, 2),
    (32, 1),
    (64, 2),
    (128, 1),
    (256, 2),
    (256, 1),
    (512, 2),
    (512, 1),
    (1024, 2),
]

# Cache settings
MAX_CACHE_SIZE = 50
CACHE_CLEANUP_THRESHOLD = 0.8  # Cleanup when cache reaches 80% of max size

# Preview settings
DEFAULT_PREVIEW_SIZE = (256, 256)
MAX_PREVIEW_WORKERS = 4

# Rendering
DEFAULT_RENDER_SCALE = 2.0
MAX_RENDER_SCALE = 8.0

# Logging
LOGGER_NAME = "graphicskit"
LOG_FILE_NAME = "graphicskit.log"
LOG_MAX_BYTES = 1_048_576
LOG_BACKUP_COUNT = 5

# Extensions accepted when reading images from disk
SUPPORTED_IMAGE_EXTENSIONS = {
    '.png', '.tif', '.tiff', '.heif', '.heifs', '.heic', '.heics', '.avci',
    '.avcs', '.hif', '.pdf', '.jpg', '.jpeg', '.jpe', '.jif', '.jfif', '.jfi',
    '.psd', '.icns', '.bmp', '.gif', '.webp',
}
