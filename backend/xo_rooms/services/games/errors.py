class RejectedInput(Exception):
    """Client input refused before any state was touched.

    The message is human readable and is sent back to the originating
    connection only.
    """


class RoomJoinError(RejectedInput):
    pass
