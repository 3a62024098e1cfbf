"""Keystore and truststore generation for Cassandra internode TLS."""
