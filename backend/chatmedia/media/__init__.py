"""Image upload and storage module for chatmedia.

This module validates image uploads, stores them on local disk and binds the
resulting references to user profiles and chat messages.

Supported file types:
- Images: jpg, jpeg, png, gif (extension and media type must both match)
- At most 5MB per file

A user's previous profile image is deleted once a new one is committed.
Message images are never deleted.
"""
