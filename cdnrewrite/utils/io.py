BUFF_SIZE = 16384


# =============================================================================
def no_except_close(closable):
    """Attempts to call the close method of the
    supplied object catching all exceptions.

    :param closable: The object to be closed
    :rtype: None
    """
    try:
        closable.close()
    except Exception:
        pass


# =============================================================================
def StreamIter(stream, size=BUFF_SIZE):
    """Iterate over a file-like stream in chunks, closing it when done"""
    try:
        while True:
            buff = stream.read(size)
            if not buff:
                break
            yield buff
    finally:
        no_except_close(stream)


# =============================================================================
def read_all(app_iter):
    """Consume a WSGI response iterable into a single bytestring,
    closing the iterable once done, as required by WSGI

    :param app_iter: The WSGI response iterable
    :return: The full response body
    :rtype: bytes
    """
    try:
        return b''.join(app_iter)
    finally:
        if hasattr(app_iter, 'close'):
            app_iter.close()
