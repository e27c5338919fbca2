"""File upload and storage module for Sharebox.

Uploads arrive as multipart/form-data, are decoded by ``app.multipart``,
written to the uploads directory under a generated name, and announced in the
message log as an ``image`` or ``file`` message.

Images (jpg, jpeg, png, gif, webp, svg, bmp, ico) are served inline; every
other file is served as a download.
"""
