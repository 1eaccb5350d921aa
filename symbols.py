INT_TYPE = "int"
STRING_TYPE = "string"
BOOL_TYPE = "bool"


class Symbol:
    def __init__(self, var_type, value=None):
        self.var_type = var_type
        self.value = value  # None until initialized

    def __repr__(self):
        return f"Symbol({self.var_type}, {self.value!r})"


class SymbolTable:
    """Variable name -> declared type and current value.

    One table is created per program run and shared by the analyzer and the
    interpreter; call clear() before reusing it for another program.
    """

    def __init__(self):
        self.table: dict[str, Symbol] = {}

    def declare(self, name: str, var_type: str, value=None):
        self.table[name] = Symbol(var_type, value)

    def assign(self, name: str, value):
        self.table[name].value = value

    def contains(self, name: str) -> bool:
        return name in self.table

    def type_of(self, name: str) -> str | None:
        symbol = self.table.get(name)
        return symbol.var_type if symbol is not None else None

    def value_of(self, name: str):
        symbol = self.table.get(name)
        return symbol.value if symbol is not None else None

    def clear(self):
        self.table.clear()

    def copy(self):
        other = SymbolTable()
        for name, symbol in self.table.items():
            other.table[name] = Symbol(symbol.var_type, symbol.value)
        return other

    def __contains__(self, name):
        return name in self.table

    def __len__(self):
        return len(self.table)

    def __iter__(self):
        return iter(self.table)
