def file_contents(fname):
    with open(fname, "rb") as f:
        return f.read().decode('utf8')


class SimpleClass(object):
    """Keyword arguments become attributes; subclasses fill gaps with _default()."""

    def __init__(self, **args):
        self.__dict__.update(args)

    def _default(self, arg, val):
        if self.__dict__.get(arg) is None:
            self.__dict__[arg] = val


class GenericException(Exception):
    def __init__(self, msg=None):
        super().__init__(msg)
        self.msg = msg

    def __str__(self):
        return str(self.msg)
