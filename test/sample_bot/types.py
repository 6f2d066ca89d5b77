from herald import ArgumentType


class ColorType(ArgumentType):
    id = "color"
    names = frozenset({"red", "green", "blue"})

    def validate(self, value, message, argument=None, /):
        return value.lower() in self.names or "Please pick red, green or blue."

    def parse(self, value, message, argument=None, /):
        return value.lower()
