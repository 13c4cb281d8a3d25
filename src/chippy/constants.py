# Memory map
MEMORY_SIZE = 4096
GAME_START_ADDRESS = 512
GLYPH_START_ADDRESS = 80
GLYPH_HEIGHT = 5
INTERPRETER_END_ADDRESS = 160

# Masks
LOWER_CHAR_MASK = 15
BYTE_MASK = 255
ADDRESS_MASK = 4095
WORD_MASK = 65535

# Registers
REGISTER_COUNT = 16
FLAG_REGISTER = 15
STACK_SIZE = 16
KEY_COUNT = 16

# Display
SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32
SPRITE_WIDTH = 8

# Timing
TIMER_DELAY = 1 / 60
OPCODE_DELAY = 4 / 1000

DIGIT_SPRITES = bytes.fromhex(
    "f0909090f0"  # 0
    "2060202070"  # 1
    "f010f080f0"  # 2
    "f010f010f0"  # 3
    "9090f01010"  # 4
    "f080f010f0"  # 5
    "f080f090f0"  # 6
    "f010204040"  # 7
    "f090f090f0"  # 8
    "f090f010f0"  # 9
    "f090f09090"  # a
    "e090e090e0"  # b
    "f0808080f0"  # c
    "e0909090e0"  # d
    "f080f080f0"  # e
    "f080f08080"  # f
)
