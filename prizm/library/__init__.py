"""Animation library: remote sync, local files and the device-side store."""
