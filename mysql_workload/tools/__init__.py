"""Wrappers around the external tools (tcpdump, nc, pt-query-digest, percona-playback, mysqladmin)."""
