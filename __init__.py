"""LoraLab 图片 / 视频生成插件"""
