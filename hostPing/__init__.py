"""
                                   host-ping
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
          Проверка доступности узла с помощью ICMP ECHO REQUEST/REPLY
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Узел считается доступным, если ответ получен больше чем на половину запросов.
Формат принимаемой датаграммы:
    IP header       : 20 - 60 bytes
        Version             : 4 bits            ==  4
        IHL                 : 4 bits            ==  5 .. 15
        Type of Service     : 1 byte
        Total Length        : 2 bytes
        Identification      : 2 bytes
        Flags               : 3 bits
        Fragment Offset     : 13 bits
        Time to Live        : 1 byte
        Protocol            : 1 byte            ==  1
        Header Checksum     : 2 bytes
        Source Address      : 4 bytes
        Destination Address : 4 bytes
        Options             : 0 - 40 bytes      ==  IHL * 4 - 20
    ICMP            : 8 bytes + body
        type                : 1 byte            ==  8 (запрос), 0 (ответ)
        code                : 1 byte            ==  0
        checksum            : 2 bytes           ==  16 битный обратный код
                                                    дополняющей суммы всех
                                                    16 битных слов
                                                    начиная с поля type.
        ECHO part of header : 4 bytes
            identifier              : 2 bytes   ==  id сеанса
            sequence number         : 2 bytes   ==  начинается с 1
                                                    и увеличивается на 1
                                                    с каждым запросом
        Description         : 36 bytes          ==  "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
Заголовок IP посылаемого запроса формирует ядро.
"""
import hostPing.icmp
import hostPing.pinger
import hostPing.utils

from hostPing.pinger import Pinger, probe
