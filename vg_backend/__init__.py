"""Video Grid backend: a browsable, thumbnailed catalog of local video folders."""
