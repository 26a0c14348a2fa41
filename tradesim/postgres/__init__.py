"""Asynchronous PostgreSQL client: wire encoding, results, SCRAM and pooling."""