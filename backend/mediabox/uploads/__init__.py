"""Media upload module for Mediabox.

This module validates uploaded files and stores them under a directory
structure keyed by media category.

Supported categories (extensions are configurable):
- Images: jpg, jpeg, png, gif, webp
- Audio: mp3, wav, ogg, m4a, aac
- Video: mp4, avi, mov, wmv, flv, webm, mkv

Files are written to ``{upload_dir}/{images|audio|video}/`` with unique
names and served back at ``/uploads/{category}/{filename}``. On read-only
deployments the bytes are handed back to the caller instead of being written.
"""
