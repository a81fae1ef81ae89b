"""
The router's plain-text control protocol: newline-delimited blocks in, newline-terminated commands out.
"""
