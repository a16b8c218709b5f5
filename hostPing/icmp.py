"""
Кодирование и декодирование заголовков IPv4 и ICMP
"""
import socket
import struct

from hostPing import utils

ECHO_REPLY = 0
ECHO_REQUEST = 8

IPV4_MIN_HEADER_LENGTH = 20
IPV4_MAX_HEADER_LENGTH = 60
ICMP_HEADER_LENGTH = 8


class HeaderError(ValueError):
    """
    Неверный или обрезанный заголовок
    """


class IPv4Header:
    """
    Заголовок IPv4 (только для чтения)
    """

    def __init__(self, version, header_length, type_of_service, total_length,
                 identification, flags, fragment_offset, time_to_live,
                 protocol, header_checksum, source, destination, options=b''):
        self.version = version
        self.header_length = header_length
        self.type_of_service = type_of_service
        self.total_length = total_length
        self.identification = identification
        self.flags = flags
        self.fragment_offset = fragment_offset
        self.time_to_live = time_to_live
        self.protocol = protocol
        self.header_checksum = header_checksum
        self.source = source
        self.destination = destination
        self.options = options


def decode_ipv4_header(data):
    """
    Разбор заголовка IPv4
    :type data: bytes или memoryview
    :param data: начало датаграммы
    :return: IPv4Header
    :raise HeaderError: данных меньше 20 байт, версия не 4,
                        длина опций вне [0, 40] или данных меньше длины заголовка
    """
    if len(data) < IPV4_MIN_HEADER_LENGTH:
        raise HeaderError("IPv4 header truncated: {} bytes".format(len(data)))
    # noinspection SpellCheckingInspection
    ver_ihl, type_of_service, total_length, identification, \
        flags3_fragment_offset13, time_to_live, protocol, \
        header_checksum, src_address, dst_address = \
        struct.unpack('!BBHHHBBH4s4s', bytes(data[:IPV4_MIN_HEADER_LENGTH]))
    version = ver_ihl >> 4
    if version != 4:
        raise HeaderError("not an IPv4 header: version {}".format(version))
    header_length = (ver_ihl & 0xF) * 4
    options_length = header_length - IPV4_MIN_HEADER_LENGTH
    if options_length < 0 or options_length > IPV4_MAX_HEADER_LENGTH - IPV4_MIN_HEADER_LENGTH:
        raise HeaderError("bad IPv4 header length: {}".format(header_length))
    if len(data) < header_length:
        raise HeaderError("IPv4 options truncated: {} of {} bytes".format(len(data), header_length))
    return IPv4Header(version, header_length, type_of_service, total_length,
                      identification, flags3_fragment_offset13 >> 13,
                      flags3_fragment_offset13 & 0x1FFF, time_to_live, protocol,
                      header_checksum, socket.inet_ntoa(src_address),
                      socket.inet_ntoa(dst_address),
                      bytes(data[IPV4_MIN_HEADER_LENGTH:header_length]))


class IcmpHeader:
    """
    Заголовок ICMP: type, code, checksum, identifier, sequence number
    """

    def __init__(self, icmp_type=ECHO_REQUEST, code=0, identifier=0,
                 sequence_number=0, checksum=0):
        self.type = icmp_type
        self.code = code
        self.checksum = checksum
        self.identifier = identifier
        self.sequence_number = sequence_number

    def encode(self):
        """
        :return: 8 байт заголовка в сетевом порядке
        """
        # noinspection SpellCheckingInspection
        return struct.pack('!BBHHH', self.type, self.code, self.checksum,
                           self.identifier, self.sequence_number)

    @staticmethod
    def decode(data):
        """
        Разбор заголовка, контрольная сумма не проверяется
        :type data: bytes или memoryview
        :raise HeaderError: данных меньше 8 байт
        """
        if len(data) < ICMP_HEADER_LENGTH:
            raise HeaderError("ICMP header truncated: {} bytes".format(len(data)))
        icmp_type, code, checksum, identifier, sequence_number = \
            struct.unpack('!BBHHH', bytes(data[:ICMP_HEADER_LENGTH]))
        return IcmpHeader(icmp_type, code, identifier, sequence_number, checksum)

    def __eq__(self, other):
        return (isinstance(other, IcmpHeader)
                and self.encode() == other.encode())

    def __repr__(self):
        return "IcmpHeader(type={}, code={}, id={}, seq={}, checksum={:#06x})".format(
            self.type, self.code, self.identifier, self.sequence_number, self.checksum)


def send_echo_request(sock, ip, icmp_id, sequence_num, data):
    """
    Посылка ICMP ECHO REQUEST
    :param sock: сокет для отправки сообщения
    :param ip: адресат
    :param icmp_id: идентификатор
    :param sequence_num: номер сообщения
    :param data: данные
    :return: отправленный заголовок
    """
    header = IcmpHeader(ECHO_REQUEST, 0, icmp_id, sequence_num)
    header.checksum = utils.compute_checksum(header, data)
    sock.sendto(header.encode() + data, (ip, 0))
    return header


def parse_reply(packet):
    """
    Разбор датаграммы, полученной из сырого ICMP сокета
    :type packet: bytes
    :param packet: датаграмма вместе с заголовком IPv4
    :return: кортеж (IPv4Header, IcmpHeader, тело сообщения)
    :raise HeaderError: повреждённый заголовок
    """
    msg = memoryview(packet)
    ip_header = decode_ipv4_header(msg)
    icmp_header = IcmpHeader.decode(msg[ip_header.header_length:])
    return ip_header, icmp_header, bytes(msg[ip_header.header_length + ICMP_HEADER_LENGTH:])
