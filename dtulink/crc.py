"""CRC routines used by the inverter radio protocol."""

CRC8_INIT = 0x00
CRC8_POLY = 0x01

CRC16_MODBUS_POLYNOM = 0xA001
CRC16_NRF24_POLYNOM = 0x1021


def crc8(data: bytes) -> int:
    """Return the 8 bit checksum that terminates every radio frame."""
    crc = CRC8_INIT
    for byte in data:
        crc ^= byte
        for _ in range(8):
            feedback = CRC8_POLY if crc & 0x80 else 0x00
            crc = ((crc << 1) ^ feedback) & 0xFF
    return crc


def crc16(data: bytes, start: int = 0xFFFF) -> int:
    """Return the Modbus CRC-16 of ``data``, continuing from ``start``."""
    crc = start & 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            shift = crc & 0x0001
            crc >>= 1
            if shift:
                crc ^= CRC16_MODBUS_POLYNOM
    return crc


def crc16_nrf24(
    data: bytes, len_bits: int, start_bit: int = 0, crc_in: int = 0xFFFF
) -> int:
    """Return the bitwise CRC-16 the nRF24 chip computes over a bit range."""
    crc = crc_in & 0xFFFF
    value = 0
    for bit in range(start_bit, len_bits):
        index = bit & 0x07
        if index == 0 or bit == start_bit:
            value = data[bit >> 3]
        crc ^= 0x8000 & (value << (8 + index))
        if crc & 0x8000:
            crc = ((crc << 1) ^ CRC16_NRF24_POLYNOM) & 0xFFFF
        else:
            crc = (crc << 1) & 0xFFFF
    return crc