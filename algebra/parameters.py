"""
Fixed Cryptographic Parameters
==============================
The standard baseline parameters (256-bit q, 4096-bit p) plus small toy
parameter sets that keep tests fast. Toy parameters offer no security.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from errors import InvalidParameterError, SerializationError
from algebra.algebra import Group, ScalarField
from utils.serialization import CanonicalSerializable, hex_to_int, int_to_hex, require

logger = logging.getLogger(__name__)


def _hex(text: str) -> int:
    return int("".join(text.split()), 16)


# ============================================================================
# PARAMETER CONSTANTS
# ============================================================================

STANDARD_Q = _hex("""
FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFF43""")

STANDARD_P = _hex("""
FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF
B17217F7 D1CF79AB C9E3B398 03F2F6AF 40F34326 7298B62D 8A0D175B 8BAAFA2B
E7B87620 6DEBAC98 559552FB 4AFA1B10 ED2EAE35 C1382144 27573B29 1169B825
3E96CA16 224AE8C5 1ACBDA11 317C387E B9EA9BC3 B136603B 256FA0EC 7657F74B
72CE87B1 9D6548CA F5DFA6BD 38303248 655FA187 2F20E3A2 DA2D97C5 0F3FD5C6
07F4CA11 FB5BFB90 610D30F8 8FE551A2 EE569D6D FC1EFA15 7D2E23DE 1400B396
17460775 DB8990E5 C943E732 B479CD33 CCCC4E65 9393514C 4C1A1E0B D1D6095D
25669B33 3564A337 6A9C7F8A 5E148E82 074DB601 5CFE7AA3 0C480A54 17350D2C
955D5179 B1E17B9D AE313CDB 6C606CB1 078F735D 1B2DB31B 5F50B518 5064C18B
4D162DB3 B365853D 7598A195 1AE273EE 5570B6C6 8F969834 96D4E6D3 30AF889B
44A02554 731CDC8E A17293D1 228A4EF9 8D6F5177 FBCF0755 268A5C1F 9538B982
61AFFD44 6B1CA3CF 5E9222B8 8C66D3C5 422183ED C9942109 0BBB16FA F3D949F2
36E02B20 CEE886B9 05C128D5 3D0BD2F9 62136319 6AF50302 0060E499 08391A0C
57339BA2 BEBA7D05 2AC5B61C C4E9207C EF2F0CE2 D7373958 D7622658 90445744
FB5F2DA4 B7510058 92D35689 0DEFE9CA D9B9D4B7 13E06162 A2D8FDD0 DF2FD608
FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF FFFFFFFF""")

STANDARD_G = _hex("""
36036FED 214F3B50 DC566D3A 312FE413 1FEE1C2B CE6D02EA 39B477AC 05F7F885
F38CFE77 A7E45ACF 4029114C 4D7A9BFE 058BF2F9 95D2479D 3DDA618F FD910D3C
4236AB2C FDD783A5 016F7465 CF59BBF4 5D24A22F 130F2D04 FE93B2D5 8BB9C1D1
D27FC9A1 7D2AF49A 779F3FFB DCA22900 C14202EE 6C996160 34BE35CB CDD3E7BB
7996ADFE 534B63CC A41E21FF 5DC778EB B1B86C53 BFBE9998 7D7AEA07 56237FB4
0922139F 90A62F2A A8D9AD34 DFF799E3 3C857A64 68D001AC F3B681DB 87DC4242
755E2AC5 A5027DB8 1984F033 C4D17837 1F273DBB 4FCEA1E6 28C23E52 759BC776
5728035C EA26B44C 49A65666 889820A4 5C33DD37 EA4A1D00 CB62305C D541BE1E
8A92685A 07012B1A 20A746C3 591A2DB3 815000D2 AACCFE43 DC49E828 C1ED7387
466AFD8E 4BF19355 93B2A442 EEC271C5 0AD39F73 3797A1EA 11802A25 57916534
662A6B7E 9A9E449A 24C8CFF8 09E79A4D 806EB681 119330E6 C57985E3 9B200B48
93639FDF DEA49F76 AD1ACD99 7EBA1365 7541E79E C57437E5 04EDA9DD 01106151
6C643FB3 0D6D58AF CCD28B73 FEDA29EC 12B01A5E B86399A5 93A9D5F4 50DE39CB
92962C5E C6925348 DB54D128 FD99C14B 457F883E C20112A7 5A6A0581 D3D80A3B
4EF09EC8 6F9552FF DA1653F1 33AA2534 983A6F31 B0EE4697 935A6B1E A2F75B85
E7EBA151 BA486094 D68722B0 54633FEC 51CA3F29 B31E77E3 17B178B6 B9D8AE0F""")

# Toy parameters: 7-bit q, 16-bit p
TOY_Q7P16 = (127, 59183, 32616)

# Toy parameters: 64-bit q, 256-bit p
TOY_Q64P256 = (
    _hex("FFFFFFFF FFFFFFC5"),
    _hex("FFFFFFFF FFFFFFFF 93C467E3 7DB1212B 89995855 493FF059 FFFFFFFF FFFFFFFF"),
    _hex("3B543166 9E3E4893 DF745C67 CDCFD95C CDDA2248 78A3CD5D 3226F75C C5A95638"),
)


# ============================================================================
# FIXED PARAMETERS
# ============================================================================


@dataclass(eq=False)
class FixedParameters(CanonicalSerializable):
    """The field Z_q and group of order q shared by the whole election"""
    name: str
    field: ScalarField
    group: Group

    def __post_init__(self):
        if not self.group.matches_field(self.field):
            raise InvalidParameterError(
                f"Group order does not match field order for parameters '{self.name}'")

    @classmethod
    def new(cls, name: str, q: int, p: int, g: int, validate: bool = True) -> 'FixedParameters':
        field = ScalarField(q, validate=validate)
        group = Group(p, q, g, validate=validate)
        return cls(name=name, field=field, group=group)

    @classmethod
    def new_unchecked(cls, name: str, q: int, p: int, g: int) -> 'FixedParameters':
        return cls(name=name, field=ScalarField.new_unchecked(q),
                   group=Group.new_unchecked(p, q, g))

    @property
    def q(self) -> int:
        return self.field.q

    @property
    def p(self) -> int:
        return self.group.p

    @property
    def g(self) -> int:
        return self.group.g

    @property
    def r(self) -> int:
        return self.group.r

    def validate(self, check_primality: bool = True):
        """Raise InvalidParameterError unless the parameters are well formed"""
        if not self.group.matches_field(self.field):
            raise InvalidParameterError("Group order does not match field order")
        self.group.validate(check_primality=check_primality)
        logger.debug(f"Validated fixed parameters '{self.name}'")

    def __eq__(self, other) -> bool:
        return (isinstance(other, FixedParameters)
                and self.field == other.field and self.group == other.group)

    def __hash__(self) -> int:
        return hash((self.field, self.group))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'q': int_to_hex(self.q),
            'p': int_to_hex(self.p),
            'g': int_to_hex(self.g),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FixedParameters':
        name = require(data, 'name', str)
        q = hex_to_int(require(data, 'q', str))
        p = hex_to_int(require(data, 'p', str))
        g = hex_to_int(require(data, 'g', str))
        known = PARAMETER_SETS.get(name)
        if known is not None and (known.q, known.p, known.g) == (q, p, g):
            return known
        try:
            # Only the cheap structural checks; full primality is validate()'s job
            params = cls.new_unchecked(name, q, p, g)
            params.validate(check_primality=False)
        except InvalidParameterError as e:
            raise SerializationError(f"Malformed fixed parameters: {e}") from e
        return params


STANDARD_PARAMETERS = FixedParameters.new_unchecked(
    "standard", STANDARD_Q, STANDARD_P, STANDARD_G)

TOY_PARAMETERS_Q7P16 = FixedParameters.new_unchecked(
    "toy-q7p16", *TOY_Q7P16)

TOY_PARAMETERS_Q64P256 = FixedParameters.new_unchecked(
    "toy-q64p256", *TOY_Q64P256)

PARAMETER_SETS: Dict[str, FixedParameters] = {
    params.name: params for params in (
        STANDARD_PARAMETERS, TOY_PARAMETERS_Q7P16, TOY_PARAMETERS_Q64P256)
}


def parameters_by_name(name: str) -> FixedParameters:
    """Look up a built-in parameter set"""
    try:
        return PARAMETER_SETS[name]
    except KeyError:
        raise InvalidParameterError(
            f"Unknown parameter set '{name}'. Known sets: {sorted(PARAMETER_SETS)}") from None
