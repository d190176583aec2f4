"""
Ядро фонда: доменные модели, fixed-point математика, ошибки и JSON контракты.

Не зависит от токенов, площадки обмена и часов; всё внешнее приходит через
src.fund.interfaces.
"""
