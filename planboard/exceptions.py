class InvalidPayloadError(Exception):
    def __init__(self, msg):
        self.message = msg
        super().__init__(msg)


class DependencyCycleError(InvalidPayloadError):
    pass
