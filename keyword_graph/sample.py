"""Small built-in corpus used when no input file is given."""

SAMPLE_DOCUMENTS = [
    {"Keywords": "机器学习; 人工智能; 深度学习"},
    {"Keywords": "人工智能; 神经网络; 强化学习"},
    {"Keywords": "深度学习; 计算机视觉; 图像识别"},
    {"Keywords": "自然语言处理; 机器学习; 深度学习"},
    {"Keywords": "大数据; 数据挖掘; 人工智能"},
    {"Keywords": "强化学习; 深度学习; 马尔可夫决策过程"},
    {"Keywords": "计算机视觉; 卷积神经网络; 深度学习"},
    {"Keywords": "知识图谱; 自然语言处理; 语义网"},
    {"Keywords": "推荐系统; 协同过滤; 机器学习"},
    {"Keywords": "图神经网络; 深度学习; 图算法"},
    {"Keywords": "迁移学习; 深度学习; 域适应"},
    {"Keywords": "情感分析; 自然语言处理; 机器学习"},
    {"Keywords": "机器翻译; 自然语言处理; 注意力机制"},
    {"Keywords": "语音识别; 深度学习; 隐马尔可夫模型"},
    {"Keywords": "图像分割; 计算机视觉; 深度学习"},
]
