import inspect


def caller_module(skip: int = 2) -> str:
    """Full dotted name of the module `skip` frames up the stack.

    skip=1 means "who calls me", skip=2 "who calls my caller" etc.
    An empty string is returned if the frame belongs to no importable module.
    """
    frame = inspect.currentframe()
    try:
        for _ in range(skip):
            if frame is None:
                raise RuntimeError(f"The stack has fewer than {skip} + 1 frames in it.")
            frame = frame.f_back
        if frame is None:
            raise RuntimeError(f"The stack has fewer than {skip} + 1 frames in it.")
        module_info = inspect.getmodule(frame)
        return module_info.__name__ if module_info else ""
    finally:
        # See: https://docs.python.org/3/library/inspect.html#the-interpreter-stack
        del frame
