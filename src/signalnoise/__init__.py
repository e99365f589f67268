"""signalnoise -- Signal/Noise 时间块会话引擎与 Signal 比率计算"""

__version__ = "0.1.0"
