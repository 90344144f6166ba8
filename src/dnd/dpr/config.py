"""DPR 引擎配置."""

import os

from dotenv import load_dotenv

load_dotenv()


# 持久化格式版本
STORAGE_VERSION = 1

# 日志级别
LOG_LEVEL = os.getenv("DPR_LOG_LEVEL", "INFO")

# 命中修正
ARCHERY_TO_HIT = 2  # 箭术战斗风格
BLESS_TO_HIT = 2.5  # 祝福术 1d4 的期望
POWER_ATTACK_PENALTY = 5  # GWM / SS 命中惩罚
POWER_ATTACK_DAMAGE = 10  # GWM / SS 伤害加成

# 伤害修正
DUELING_DAMAGE = 2  # 对决战斗风格
RIDER_DIE_AVG = 3.5  # 咒法/猎人印记 1d6
D8_AVG = 4.5  # 至圣斩骰
SNEAK_DIE_AVG = 3.5  # 偷袭骰 d6
PAM_BUTT_DIE_AVG = 2.5  # 长柄武器大师 柄击 1d4

# 上限
SNEAK_DICE_CAP = 10
SMITE_DICE_CAP = 5
