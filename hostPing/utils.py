def carry_around_add(a, b):
    """
    дополняющая сумма
    :param a: первое слагаемое
    :param b: второе слагаемое
    :return: дополняющая сумма a и b
    """
    c = a + b
    return (c & 0xFFFF) + (c >> 16)


def checksum(msg, avoid_range=range(0)):
    """
    обратный код 16 битной дополняющей суммы елементов msg;
    используется для повторной проверки полученного сообщения:
    с avoid_range на поле checksum результат равен этому полю,
    по всему сообщению с верной суммой результат равен 0
    :param msg: сообщение для подсчёта контрольной суммы
    :param avoid_range: диапазон индексов елементов, которые не должны учавствовать в подсчёте
                        (считаются нулями)
    :return: контрольная сумма
    """
    s = 0
    for i in range(1, len(msg), 2):
        a, b = 0, 0
        if i - 1 not in avoid_range:
            a = int(msg[i - 1])
        if i not in avoid_range:
            b = int(msg[i])
        s = carry_around_add(s, (a << 8) | b)
    if len(msg) % 2 == 1 and len(msg) - 1 not in avoid_range:
        s = carry_around_add(s, int(msg[len(msg) - 1]) << 8)
    return ~s & 0xFFFF


def compute_checksum(header, body=b''):
    """
    контрольная сумма ICMP сообщения по полям заголовка и телу,
    поле checksum заголовка не учитывается
    :type header: hostPing.icmp.IcmpHeader
    :type body: bytes
    :param header: заголовок ICMP
    :param body: тело сообщения
    :return: контрольная сумма
    """
    s = (header.type << 8) | header.code
    s = carry_around_add(s, header.identifier)
    s = carry_around_add(s, header.sequence_number)
    for i in range(1, len(body), 2):
        s = carry_around_add(s, (body[i - 1] << 8) | body[i])
    if len(body) % 2 == 1:
        s = carry_around_add(s, body[-1] << 8)
    return ~s & 0xFFFF
