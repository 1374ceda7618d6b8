class DictIO:
    @staticmethod
    def GetEssential(dictionary, *arg):
        dictionary = {key.lower() if isinstance(key, str) else key: value for key, value in dictionary.items()}
        for keyword in arg:
            keyword_lower = keyword.lower() if isinstance(keyword, str) else keyword
            if keyword_lower in dictionary:
                return dictionary[keyword_lower]
        raise RuntimeError(f"Keyword:: /{arg[0]}/ is not included in the data dictionary!")

    @staticmethod
    def GetAlternative(dictionary, keyword, default):
        dictionary = {key.lower() if isinstance(key, str) else key: value for key, value in dictionary.items()}
        keyword_lower = keyword.lower() if isinstance(keyword, str) else keyword
        if keyword_lower in dictionary:
            return dictionary[keyword_lower]
        return default

    @staticmethod
    def GetOptional(dictionary, keyword):
        dictionary = {key.lower() if isinstance(key, str) else key: value for key, value in dictionary.items()}
        keyword_lower = keyword.lower() if isinstance(keyword, str) else keyword
        if keyword_lower in dictionary:
            return dictionary[keyword_lower]
        return None
