"""Edition matching, validation, transcode planning and submission assembly.

Everything in this package is pure: it works on data that has already been
gathered and never touches the filesystem, subprocesses or the network.
"""
