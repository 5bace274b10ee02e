class ChainBackend:
    """Where verifier contracts live.

    ``deploy`` returns the new contract's address, ``call`` runs a read-only
    call and returns the raw return data. Both block; neither retries.
    """

    name = "abstract"

    def deploy(self, verifier_source):
        raise NotImplementedError

    def call(self, address, data):
        raise NotImplementedError

    def commit(self):
        """Make pending deployments callable."""
